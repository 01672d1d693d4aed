"""CLI entrypoint for scheduled sync runs."""

from __future__ import annotations

import argparse
import logging

from survivor_pool.db import Base, SessionLocal, engine
from survivor_pool.ingestion.espn_client import EspnFetchError
from survivor_pool.ingestion.sync import GameSynchronizer
from survivor_pool.season import REGULAR_SEASON_WEEKS


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync NFL games from ESPN for the current week or a given week.",
    )
    parser.add_argument(
        "--week",
        type=int,
        help=f"Week to sync (1-{REGULAR_SEASON_WEEKS}). Defaults to the current week.",
    )
    parser.add_argument(
        "--season",
        type=int,
        help="Season year. Defaults to the configured season.",
    )
    args = parser.parse_args()
    if args.week is not None and not 1 <= args.week <= REGULAR_SEASON_WEEKS:
        raise SystemExit(f"--week must be between 1 and {REGULAR_SEASON_WEEKS}")
    return args


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    args = _parse_args()
    Base.metadata.create_all(bind=engine)
    synchronizer = GameSynchronizer(session_factory=SessionLocal)

    try:
        if args.week is None:
            result = synchronizer.sync_current_week()
        else:
            result = synchronizer.sync_week(args.week, season_year=args.season)
    except EspnFetchError as exc:
        logging.error("Sync failed: %s", exc)
        raise SystemExit(1)

    if result.was_skipped:
        logging.info("Sync skipped: reason=%s", result.reason)
        return
    logging.info(
        "Done: week=%s fetched=%s inserted=%s updated=%s unchanged=%s skipped=%s "
        "errors=%s events=%s eliminations=%s",
        result.week,
        result.total_fetched,
        result.inserted,
        result.updated,
        result.unchanged,
        result.skipped,
        result.errors,
        result.events,
        result.eliminations,
    )


if __name__ == "__main__":
    main()
