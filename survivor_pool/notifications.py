"""In-process notification sink for game events."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from survivor_pool.models import GameEvent
from survivor_pool.schemas import EventGameOut, GameEventRecord, ScoreOut, TeamOut

logger = logging.getLogger(__name__)

Subscriber = Callable[[dict[str, Any]], None]


def _team_out(team) -> TeamOut | None:
    if team is None:
        return None
    return TeamOut.model_validate(team)


def build_event_record(event: GameEvent) -> dict[str, Any]:
    """Serialize a persisted GameEvent (with its game and team) to JSON-safe data."""

    created_at = event.created_at or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    game = event.game
    record = GameEventRecord(
        id=event.id,
        type=event.event_type,
        description=event.description,
        team=_team_out(event.team),
        game=EventGameOut(
            id=game.id,
            week=game.week,
            season_year=game.season_year,
            home_team=_team_out(game.home_team),
            away_team=_team_out(game.away_team),
        ),
        score=ScoreOut(home=event.score_home, away=event.score_away),
        league_member_id=event.league_member_id,
        timestamp=created_at,
    )
    return record.model_dump(mode="json")


class NotificationHub:
    """Keeps the last *maxlen* event records and fans them out to subscribers.

    Delivery to clients (SSE, websockets, push) belongs to whoever
    subscribes; a subscriber that raises is logged and dropped.
    """

    def __init__(self, maxlen: int = 200) -> None:
        self._buffer: deque[dict[str, Any]] = deque(maxlen=maxlen)
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, record: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.append(record)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(record)
            except Exception:
                logger.exception(
                    "Notification subscriber failed on event id=%s; dropping it",
                    record.get("id"),
                )
                self.unsubscribe(callback)

    def publish_many(self, records: Iterable[dict[str, Any]]) -> None:
        for record in records:
            self.publish(record)

    def recent(
        self,
        limit: int = 20,
        team_abbreviations: Iterable[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the most recent *limit* records (newest first)."""
        with self._lock:
            items = list(self._buffer)
        items.reverse()
        if team_abbreviations is not None:
            wanted = {abbr.upper() for abbr in team_abbreviations}
            items = [
                item
                for item in items
                if item.get("team") and item["team"].get("abbreviation") in wanted
            ]
        return items[:limit]
