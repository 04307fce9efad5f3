"""Sync the calendar feed of every property that has one.

Meant for a cron job or scheduler; each property is synced in its own
transaction so one broken feed does not hold back the rest. Exits non-zero
when any property failed.

Run:
    python -m scripts.sync_all [--include-tentative]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from staysync.database import async_session_factory, engine  # noqa: E402
from staysync.errors import StaySyncError  # noqa: E402
from staysync.services.sync_service import sync_all_properties  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("sync_all")


async def main(include_tentative: bool | None) -> int:
    try:
        outcomes = await sync_all_properties(async_session_factory, include_tentative=include_tentative)
    finally:
        await engine.dispose()

    failed = 0
    for property_id, outcome in outcomes.items():
        if isinstance(outcome, StaySyncError):
            failed += 1
            print(f"  FAILED  {property_id}: {outcome.detail}")
        else:
            print(
                f"  OK      {property_id}: {outcome.confirmed_count} confirmed, "
                f"{outcome.tentative_count} tentative"
            )
    print(f"\nSynced {len(outcomes) - failed}/{len(outcomes)} properties.")
    return 1 if failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--include-tentative",
        action="store_true",
        default=None,
        help="also import tentative feed entries (default: the configured setting)",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.include_tentative)))
