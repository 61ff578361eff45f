"""
CLI entrypoint for the component metrics update. Run from cron or by hand, e.g.:

  python -m riskledger.metrics_update 42 57
  python -m riskledger.metrics_update --all

Hourly: 0 * * * * cd /path/to/riskledger && .venv/bin/python -m riskledger.metrics_update --all
"""

import argparse
import logging
import sys

from riskledger.core.config import get_settings
from riskledger.core.database import SessionLocal, check_db_connected, get_db
from riskledger.services.component_metrics import update_all_component_metrics

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute and record metrics snapshots for components."
    )
    parser.add_argument(
        "component_ids",
        nargs="*",
        type=int,
        metavar="COMPONENT_ID",
        help="Ids of the components to update",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        dest="update_all",
        help="Update every component",
    )
    args = parser.parse_args(argv)
    if args.update_all == bool(args.component_ids):
        parser.error("give one or more COMPONENT_ID values or --all (not both)")
    return args


def _database_reachable() -> bool:
    sessions = get_db()
    db = next(sessions)
    try:
        return check_db_connected(db)
    finally:
        sessions.close()


def main(argv: list[str] | None = None) -> int:
    """Run the metrics update for the requested components."""
    args = _parse_args(argv)
    settings = get_settings()

    if not _database_reachable():
        logger.error("Database is not reachable; metrics update aborted.")
        return 1

    component_ids = None if args.update_all else args.component_ids
    succeeded, failed = update_all_component_metrics(
        SessionLocal, settings, component_ids=component_ids
    )
    logger.info("Metrics update completed: succeeded=%s, failed=%s", succeeded, failed)
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
