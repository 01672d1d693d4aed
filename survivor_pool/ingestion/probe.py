"""Quick probe for ESPN NFL scoreboard availability."""

from __future__ import annotations

import argparse
import logging

from survivor_pool.ingestion.espn_client import (
    REGULAR_SEASON_TYPE,
    EspnFetchError,
    fetch_week,
)
from survivor_pool.settings import DEFAULT_SEASON_YEAR


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probe the ESPN NFL scoreboard for a week and print game count.",
    )
    parser.add_argument(
        "--season",
        type=int,
        default=DEFAULT_SEASON_YEAR,
        help=f"Season year (default: {DEFAULT_SEASON_YEAR}).",
    )
    parser.add_argument(
        "--season-type",
        type=int,
        default=REGULAR_SEASON_TYPE,
        help="ESPN season type: 1 preseason, 2 regular season, 3 postseason.",
    )
    parser.add_argument(
        "--week",
        type=int,
        default=1,
        help="Week number (default: 1).",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()

    try:
        games = fetch_week(args.season, args.season_type, args.week)
    except EspnFetchError as exc:
        logging.error("ESPN error: %s", exc)
        if exc.status:
            logging.error("Status: %s body=%s", exc.status, exc.body)
        raise SystemExit(1)

    unmapped = [game.external_id for game in games if not game.has_teams]
    logging.info(
        "Fetched %s games for season=%s week=%s (unmapped teams: %s)",
        len(games),
        args.season,
        args.week,
        len(unmapped),
    )
    for game in games:
        logging.info(
            "  %s @ %s  %s-%s  %s",
            game.away_team_abbrev or game.away_team_name,
            game.home_team_abbrev or game.home_team_name,
            game.away_score if game.away_score is not None else "-",
            game.home_score if game.home_score is not None else "-",
            game.status_detail or ("final" if game.is_final else ""),
        )


if __name__ == "__main__":
    main()
