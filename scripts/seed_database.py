#!/usr/bin/env python3
"""
Seed Database: load the IPL 2022 fixture dump into the relational store.

Reads teams, squads, matches, scorecards and standings from DATA_PATH and
upserts them by natural key. Safe to re-run: existing rows are left as they
are and standings are refreshed in place.

Usage:
    # Seed from DATA_PATH (default ./data/Indian_Premier_League_2022-03-26)
    python scripts/seed_database.py

    # Seed from another dump
    python scripts/seed_database.py --data-path /srv/ipl/dump

    # Dry run (parse and reconcile, then roll back)
    python scripts/seed_database.py --dry-run

    # Machine-readable report
    python scripts/seed_database.py --json
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from iplstats.config import get_settings  # noqa: E402
from iplstats.database import AsyncSessionLocal, close_db, init_db  # noqa: E402
from iplstats.etl import RecordStatus, run_ingestion  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def seed(data_path: str, dry_run: bool = False, as_json: bool = False) -> int:
    """Create tables, run the ingestion pipeline and print its report. Returns an exit code."""
    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            report = await run_ingestion(session, data_path, dry_run=dry_run)
    finally:
        await close_db()

    if as_json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print(f"\nIngestion report ({'dry run' if dry_run else 'committed'}):")
        for category in report.categories.values():
            print(f"  {category.summary()}")
        print(
            f"  total: created={report.total(RecordStatus.CREATED)} "
            f"existing={report.total(RecordStatus.EXISTING)} "
            f"updated={report.total(RecordStatus.UPDATED)} "
            f"skipped={report.total(RecordStatus.SKIPPED)}"
        )

    # Non-zero only when a whole category could not be read at all
    failed = [c.category for c in report.categories.values() if c.source_error]
    if failed:
        logger.warning(f"Categories with source errors: {', '.join(failed)}")
        return 1
    return 0


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Seed the IPL stats database from fixture files")
    parser.add_argument(
        "--data-path",
        type=str,
        default=settings.DATA_PATH,
        help=f"Fixture root directory (default: {settings.DATA_PATH})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the full reconciliation but roll back instead of committing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(seed(args.data_path, dry_run=args.dry_run, as_json=args.json)))


if __name__ == "__main__":
    main()
