"""Parser for ESPN NFL scoreboard payloads."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from survivor_pool.ingestion.schema import CanonicalGame
from survivor_pool.ingestion.teams import espn_team_abbreviation

logger = logging.getLogger(__name__)


def _safe_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_start_time(event: dict[str, Any]) -> datetime | None:
    date_value = event.get("date")
    if isinstance(date_value, str):
        try:
            parsed = datetime.fromisoformat(date_value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def _status_type(competition: dict[str, Any]) -> dict[str, Any]:
    status = competition.get("status")
    if not isinstance(status, dict):
        return {}
    status_type = status.get("type")
    return status_type if isinstance(status_type, dict) else {}


def _nested_int(container: Any, key: str, field: str) -> int | None:
    if not isinstance(container, dict):
        return None
    inner = container.get(key)
    if not isinstance(inner, dict):
        return None
    return _safe_int(inner.get(field))


def _split_competitors(competition: dict[str, Any]) -> tuple[dict | None, dict | None]:
    competitors = competition.get("competitors")
    if not isinstance(competitors, list):
        return None, None

    homes = [c for c in competitors if isinstance(c, dict) and c.get("homeAway") == "home"]
    aways = [c for c in competitors if isinstance(c, dict) and c.get("homeAway") == "away"]
    if len(homes) != 1 or len(aways) != 1:
        return None, None
    return homes[0], aways[0]


def _team_fields(competitor: dict[str, Any]) -> tuple[str | None, str]:
    team = competitor.get("team")
    if not isinstance(team, dict):
        return None, "TBD"
    team_id = team.get("id")
    name = team.get("displayName") or team.get("name") or "TBD"
    return (str(team_id) if team_id is not None else None), str(name)


def _parse_event(
    event: dict[str, Any],
    default_season: int,
    default_week: int,
) -> CanonicalGame | None:
    event_id = event.get("id")
    if not isinstance(event_id, str) or not event_id:
        logger.warning("Skipping ESPN event without id")
        return None

    competitions = event.get("competitions")
    if not isinstance(competitions, list) or not competitions:
        logger.warning("Skipping ESPN event %s without competitions", event_id)
        return None
    competition = competitions[0]
    if not isinstance(competition, dict):
        return None

    start_time_utc = _parse_start_time(event)
    if start_time_utc is None:
        logger.warning("Skipping ESPN event %s without a valid start time", event_id)
        return None

    home, away = _split_competitors(competition)
    if home is None or away is None:
        logger.warning("Skipping ESPN event %s without one home and one away team", event_id)
        return None

    home_team_id, home_name = _team_fields(home)
    away_team_id, away_name = _team_fields(away)

    status_type = _status_type(competition)
    state = str(status_type.get("state") or "").lower()
    is_final = bool(status_type.get("completed"))
    # ESPN reports "0" for games that have not kicked off.
    if state == "pre" and not is_final:
        home_score = None
        away_score = None
    else:
        home_score = _safe_int(home.get("score"))
        away_score = _safe_int(away.get("score"))

    try:
        return CanonicalGame(
            external_id=event_id,
            season_year=_nested_int(event, "season", "year") or default_season,
            week=_nested_int(event, "week", "number") or default_week,
            start_time_utc=start_time_utc,
            is_final=is_final,
            home_team_external_id=home_team_id,
            away_team_external_id=away_team_id,
            home_team_abbrev=espn_team_abbreviation(home_team_id),
            away_team_abbrev=espn_team_abbreviation(away_team_id),
            home_team_name=home_name,
            away_team_name=away_name,
            home_score=home_score,
            away_score=away_score,
            status_detail=str(status_type.get("detail") or status_type.get("shortDetail") or ""),
        )
    except ValidationError:
        logger.exception("Skipping malformed ESPN event %s", event_id)
        return None


def parse_week_scoreboard(
    scoreboard_json: dict,
    season: int,
    week: int,
) -> list[CanonicalGame]:
    """Parse ESPN scoreboard JSON into CanonicalGame list.

    Malformed events are logged and dropped; the rest of the week survives.
    """

    events = scoreboard_json.get("events")
    if not isinstance(events, list):
        return []

    seen_ids: set[str] = set()
    parsed_games: list[CanonicalGame] = []
    for event in events:
        if not isinstance(event, dict):
            continue
        game = _parse_event(event, season, week)
        if game is None or game.external_id in seen_ids:
            continue
        seen_ids.add(game.external_id)
        parsed_games.append(game)

    return parsed_games
