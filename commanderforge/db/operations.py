"""
Database operations for cached commander plans.

A cached plan is only valid for the engine version that computed it; rows
written by another version read as a cache miss.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from commanderforge.config import DEFAULT_ENGINE_CONFIG
from commanderforge.models.db import CommanderProfileDB
from commanderforge.models.plan import CommanderPlan


async def get_commander_profile(
    session: AsyncSession, oracle_id: str
) -> CommanderProfileDB | None:
    """Get the stored plan row for a commander, whatever its version."""
    result = await session.execute(
        select(CommanderProfileDB).where(CommanderProfileDB.oracle_id == oracle_id)
    )
    return result.scalar_one_or_none()


def plan_from_model(db_profile: CommanderProfileDB) -> CommanderPlan:
    """Convert a stored row to a domain plan."""
    return CommanderPlan.model_validate(db_profile.plan_json)


async def get_cached_plan(
    session: AsyncSession,
    oracle_id: str,
    engine_version: str = DEFAULT_ENGINE_CONFIG.version,
) -> CommanderPlan | None:
    """
    Cached plan for a commander.

    Returns None when nothing is stored or the stored plan was computed by a
    different engine version.
    """
    row = await get_commander_profile(session, oracle_id)
    if row is None or row.engine_version != engine_version:
        return None
    return plan_from_model(row)


async def set_cached_plan(
    session: AsyncSession,
    oracle_id: str,
    plan: CommanderPlan,
    engine_version: str = DEFAULT_ENGINE_CONFIG.version,
) -> CommanderProfileDB:
    """
    Insert or update the cached plan for a commander.

    If a row with the same oracle_id exists, it is overwritten.
    """
    plan_json = plan.model_dump(mode="json")
    existing = await get_commander_profile(session, oracle_id)

    if existing:
        existing.commander_name = plan.commander_name
        existing.engine_version = engine_version
        existing.plan_json = plan_json
        await session.flush()
        return existing

    row = CommanderProfileDB(
        oracle_id=oracle_id,
        commander_name=plan.commander_name,
        engine_version=engine_version,
        plan_json=plan_json,
    )
    session.add(row)
    await session.flush()
    return row


async def delete_stale_plans(
    session: AsyncSession,
    engine_version: str = DEFAULT_ENGINE_CONFIG.version,
) -> int:
    """
    Delete plans computed by other engine versions.

    Returns the number of deleted records.
    """
    result = await session.execute(
        delete(CommanderProfileDB).where(CommanderProfileDB.engine_version != engine_version)
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]
