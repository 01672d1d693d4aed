"""ESPN HTTP client for fetching NFL weekly scoreboards."""

from __future__ import annotations

import logging
import os

import requests

from survivor_pool.ingestion.espn_parser import parse_week_scoreboard
from survivor_pool.ingestion.schema import CanonicalGame

logger = logging.getLogger(__name__)
ESPN_BASE_URL = os.getenv("ESPN_BASE_URL", "https://site.api.espn.com").rstrip("/")
SCOREBOARD_PATH = "/apis/site/v2/sports/football/nfl/scoreboard"
DEFAULT_TIMEOUT_SECONDS = 12
DEFAULT_USER_AGENT = "survivor-pool/1.0 (+https://example.local)"
REGULAR_SEASON_TYPE = 2


class EspnFetchError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


def build_scoreboard_url() -> str:
    return f"{ESPN_BASE_URL}{SCOREBOARD_PATH}"


def build_scoreboard_params(season: int, season_type: int, week: int) -> dict[str, str]:
    return {
        "dates": str(season),
        "seasontype": str(season_type),
        "week": str(week),
    }


def fetch_scoreboard(season: int, season_type: int, week: int) -> dict:
    """Fetch the raw ESPN scoreboard JSON for one week.

    Raises EspnFetchError on transport failures, non-200 responses, and
    bodies that are not a JSON object. Retrying is left to the caller.
    """

    url = build_scoreboard_url()
    params = build_scoreboard_params(season, season_type, week)
    headers = {
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": "application/json",
    }

    try:
        response = requests.get(
            url,
            params=params,
            headers=headers,
            timeout=DEFAULT_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error("ESPN scoreboard request failed url=%s error=%s", url, exc)
        raise EspnFetchError(f"ESPN request failed: {exc}", url=url) from exc

    if response.status_code != 200:
        body_snippet = (response.text or "")[:300]
        logger.error(
            "ESPN scoreboard non-200 status=%s body=%s",
            response.status_code,
            body_snippet,
        )
        raise EspnFetchError(
            f"ESPN returned non-200 response: {response.status_code}",
            url=url,
            status=response.status_code,
            body=body_snippet,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        body_snippet = (response.text or "")[:300]
        raise EspnFetchError(
            "ESPN returned an unparsable payload",
            url=url,
            status=response.status_code,
            body=body_snippet,
        ) from exc

    if not isinstance(payload, dict):
        raise EspnFetchError(
            "ESPN payload is not a JSON object",
            url=url,
            status=response.status_code,
        )
    return payload


def fetch_week(
    season: int,
    season_type: int = REGULAR_SEASON_TYPE,
    week: int = 1,
) -> list[CanonicalGame]:
    payload = fetch_scoreboard(season, season_type, week)
    games = parse_week_scoreboard(payload, season, week)
    logger.info(
        "Fetched %s games season=%s seasontype=%s week=%s",
        len(games),
        season,
        season_type,
        week,
    )
    return games
