"""
Download the Scryfall oracle card data.

Run this job before building decks; the engine resolves every owned card
name against this file.
"""

import asyncio
import logging

from commanderforge.services.card_database import download_card_database

logger = logging.getLogger(__name__)


async def run_download() -> None:
    """Download the Scryfall oracle card data."""
    logger.info("Downloading Scryfall oracle cards...")

    try:
        path = await download_card_database()
        logger.info("Downloaded card database to %s", path)
    except Exception as e:
        logger.error("Failed to download card database: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_download())


if __name__ == "__main__":
    main()
