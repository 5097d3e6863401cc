"""
Precompute commander plans.

Computes the plan of every commander-eligible card in the card database and
stores it in the plan cache table, so the first build for a commander does
not pay for theme detection. Plans from older engine versions are removed.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.db.database import async_session_factory, init_db
from commanderforge.db.operations import delete_stale_plans, get_cached_plan, set_cached_plan
from commanderforge.services.card_database import CardDatabase, get_card_database
from commanderforge.services.commander_plan import get_commander_plan

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


async def build_commander_profiles(
    session: AsyncSession,
    database: CardDatabase,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    *,
    refresh: bool = False,
) -> int:
    """
    Store plans for every commander candidate.

    Commanders that already have a plan for this engine version are skipped
    unless `refresh` is set. Returns the number of plans written.
    """
    removed = await delete_stale_plans(session, config.version)
    if removed:
        logger.info("Removed %d stale commander plans", removed)

    written = 0
    for commander in database.commander_candidates():
        if not refresh and await get_cached_plan(session, commander.id, config.version):
            continue
        plan = get_commander_plan(commander, config)
        await set_cached_plan(session, commander.id, plan, config.version)
        written += 1
        if written % BATCH_SIZE == 0:
            await session.commit()
            logger.info("Stored %d commander plans...", written)

    await session.commit()
    return written


async def run_build_profiles(
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    *,
    refresh: bool = False,
) -> int:
    """Create tables if needed and precompute all commander plans."""
    await init_db()
    database = get_card_database()

    async with session_factory() as session:
        written = await build_commander_profiles(session, database, refresh=refresh)

    logger.info("Commander plan build complete. Plans written: %d", written)
    return written


def main() -> None:
    """CLI entry point for precomputing commander plans."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_build_profiles())


if __name__ == "__main__":
    main()
