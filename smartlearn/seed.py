"""Seed the configured collection store with demo data.

RUN:  python -m smartlearn.seed [--clear] [--progress]

Uses the same STORE_BACKEND / DATABASE_URL / REDIS_URL settings as the
API, so seeding a local SQLite file and then starting uvicorn shows the
demo catalogue.  Collections that already hold records are left alone;
pass --clear to wipe every collection first.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from smartlearn.core.config import SETTINGS
from smartlearn.core.logging import setup_logging
from smartlearn.repos.store_factory import create_store
from smartlearn.services.seeder import DatabaseSeeder

logger = logging.getLogger("seed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m smartlearn.seed",
        description="Load demo courses, users and enrollments.",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="empty every collection before seeding",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="also seed sample learner progress",
    )
    return parser


async def run_seed(clear: bool = False, progress: bool = False) -> int:
    """Open the store, seed it and close it.  Returns records added."""
    store = create_store(SETTINGS)
    await store.init()
    try:
        seeder = DatabaseSeeder(store)
        if clear:
            await seeder.clear_database()
        report = await seeder.check_and_seed()
        total = report.total
        if progress:
            total += await seeder.seed_sample_progress()
    finally:
        await store.close()

    logger.info("Seeded %d records into %s store", total, store.backend)
    return total


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_seed(clear=args.clear, progress=args.progress))


if __name__ == "__main__":
    main()
