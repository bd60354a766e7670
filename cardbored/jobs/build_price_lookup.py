"""
Build the bundled price lookup file from Scryfall bulk data.

Run this job to generate the lookup file the price index starts from:

    python -m cardbored.jobs.build_price_lookup --output data/cards.json

Cards without a positive USD price are left out. The file is rewritten on
every run; the log says whether Scryfall's data actually changed.
"""

import argparse
import asyncio
import logging
import time
from pathlib import Path

from cardbored.config import settings
from cardbored.services.price_index import BulkIndexSnapshot, ScryfallBulkSource, SnapshotStore
from cardbored.services.scryfall_client import ScryfallClient, create_http_client

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = Path("data") / "cards.json"


async def run_build(output_path: Path | None = None) -> bool:
    """
    Download bulk data and write the lookup file.

    Args:
        output_path: Where to write. Defaults to settings.price_lookup_path,
            then data/cards.json

    Returns:
        True if Scryfall's data changed since the existing file was built.

    Raises:
        httpx.HTTPError: If a download fails
        ValueError: If the bulk data is malformed or has no priced cards
    """
    if output_path is None:
        output_path = settings.price_lookup_path or DEFAULT_OUTPUT_PATH

    store = SnapshotStore(output_path)
    previous = store.load()

    async with create_http_client(settings.http_timeout_seconds) as http_client:
        source = ScryfallBulkSource(ScryfallClient(http_client), drop_non_positive=True)
        data = await source.fetch()

    if not data.records:
        raise ValueError("Bulk data contained no cards with USD prices")
    logger.info("Created lookup for %d cards with prices", len(data.records))

    snapshot = BulkIndexSnapshot(
        records=data.records,
        fetched_at_ms=int(time.time() * 1000),
        source_updated_at=data.source_updated_at,
    )
    store.save(snapshot)
    logger.info("Saved lookup to %s", output_path)

    previous_update = previous.source_updated_at if previous else None
    changed = previous_update is None or previous_update != data.source_updated_at
    if changed:
        logger.info(
            "Card data updated: %s -> %s", previous_update or "none", data.source_updated_at
        )
    else:
        logger.info("No changes detected - card data is up to date")
    return changed


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Build the Scryfall price lookup file")
    parser.add_argument("--output", type=Path, default=None, help="Output JSON path")
    args = parser.parse_args()

    try:
        asyncio.run(run_build(args.output))
    except Exception as e:
        logger.error("Failed to build price lookup: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
