"""Sync NFL games from ESPN into the local database and emit game events."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy.orm import Session

from survivor_pool.db import SessionLocal
from survivor_pool.ingestion.espn_client import fetch_week
from survivor_pool.ingestion.events import (
    GAME_END,
    diff_scores,
    final_description,
    scoring_description,
)
from survivor_pool.ingestion.schema import CanonicalGame
from survivor_pool.models import Game, GameEvent, Team
from survivor_pool.notifications import build_event_record
from survivor_pool.picks.elimination import EliminationProcessor
from survivor_pool.rate_limiter import RateLimiter
from survivor_pool.season import WeekResolver, utcnow
from survivor_pool.settings import SettingsSnapshot, load_settings_snapshot

logger = logging.getLogger(__name__)

SYNC_RATE_LIMIT_KEY = "espn-api-sync"

Fetcher = Callable[[int, int, int], list[CanonicalGame]]


class EventSink(Protocol):
    def publish(self, record: dict) -> None: ...


@dataclass
class SyncResult:
    status: str = "ok"  # ok | skipped
    reason: Optional[str] = None
    week: Optional[int] = None
    season_year: Optional[int] = None
    total_fetched: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: int = 0
    events: int = 0
    eliminations: int = 0

    @property
    def was_skipped(self) -> bool:
        return self.status == "skipped"

    def as_dict(self) -> dict:
        return asdict(self)


def _load_team_map(db: Session) -> dict[str, int]:
    return {abbreviation: team_id for team_id, abbreviation in db.query(Team.id, Team.abbreviation)}


class GameSynchronizer:
    """Bring stored games for one week in line with the score source.

    Repeated runs over unchanged data only bump ``last_updated``; events are
    produced solely on score increases and on the first observation of a
    final status. Only one sync runs at a time per instance; overlapping
    processes rely on the rate limiter and the idempotent upsert instead.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        rate_limiter: RateLimiter | None = None,
        fetcher: Fetcher = fetch_week,
        elimination: EliminationProcessor | None = None,
        sink: EventSink | None = None,
        settings: SettingsSnapshot | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.rate_limiter = rate_limiter or RateLimiter()
        self.fetcher = fetcher
        self.elimination = elimination or EliminationProcessor()
        self.sink = sink
        self._settings = settings
        self._clock = clock
        self._running = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    def settings(self) -> SettingsSnapshot:
        if self._settings is not None:
            return self._settings
        return load_settings_snapshot(self.session_factory)

    def sync_current_week(self, now: datetime | None = None) -> SyncResult:
        """Sync the week in progress. Guards report a skipped result."""

        if not self._running.acquire(blocking=False):
            logger.info("Sync already running, skipping")
            return SyncResult(status="skipped", reason="already_running")

        try:
            settings = self.settings()
            if not self.rate_limiter.allow(
                SYNC_RATE_LIMIT_KEY,
                settings.sync_rate_limit_max,
                settings.sync_rate_limit_window_seconds,
            ):
                logger.info("Rate limited, skipping sync")
                return SyncResult(status="skipped", reason="rate_limited")

            resolver = WeekResolver(settings.season_epoch_utc)
            current_week = resolver.current_week(now or self._clock())
            if current_week == 0:
                logger.info("No current NFL week, skipping sync")
                return SyncResult(
                    status="skipped",
                    reason="off_season",
                    season_year=settings.season_year,
                )

            logger.info("Syncing games for week %s", current_week)
            return self.sync_week(current_week, settings=settings)
        finally:
            self._running.release()

    def sync_week(
        self,
        week: int,
        season_year: int | None = None,
        settings: SettingsSnapshot | None = None,
    ) -> SyncResult:
        """Fetch, diff, and persist one week. Fetch errors propagate."""

        settings = settings or self.settings()
        season_year = season_year or settings.season_year
        result = SyncResult(week=week, season_year=season_year)

        games = self.fetcher(season_year, settings.season_type, week)
        result.total_fetched = len(games)
        if not games:
            logger.info("No games found for week %s", week)
            result.status = "skipped"
            result.reason = "no_games"
            return result

        with self.session_factory() as db:
            team_map = _load_team_map(db)
            for canonical in games:
                self._sync_one(db, canonical, team_map, season_year, week, result)

        logger.info(
            "Synced week=%s fetched=%s inserted=%s updated=%s unchanged=%s "
            "skipped=%s errors=%s events=%s eliminations=%s",
            week,
            result.total_fetched,
            result.inserted,
            result.updated,
            result.unchanged,
            result.skipped,
            result.errors,
            result.events,
            result.eliminations,
        )
        return result

    def _sync_one(
        self,
        db: Session,
        canonical: CanonicalGame,
        team_map: dict[str, int],
        season_year: int,
        week: int,
        result: SyncResult,
    ) -> None:
        try:
            outcome, events = self._sync_game(db, canonical, team_map, season_year, week)
            db.commit()
        except Exception:
            db.rollback()
            result.errors += 1
            logger.exception("Failed syncing game espn_game_id=%s", canonical.external_id)
            return

        if outcome == "inserted":
            result.inserted += 1
        elif outcome == "updated":
            result.updated += 1
        elif outcome == "unchanged":
            result.unchanged += 1
        else:
            result.skipped += 1

        result.events += len(events)
        result.eliminations += sum(1 for event in events if event.league_member_id is not None)
        self._publish(events)

    def _publish(self, events: list[GameEvent]) -> None:
        if self.sink is None or not events:
            return
        for event in events:
            try:
                self.sink.publish(build_event_record(event))
            except Exception:
                logger.exception("Failed publishing game event id=%s", event.id)

    def _sync_game(
        self,
        db: Session,
        canonical: CanonicalGame,
        team_map: dict[str, int],
        season_year: int,
        week: int,
    ) -> tuple[str, list[GameEvent]]:
        if canonical.is_final and not canonical.has_scores:
            logger.warning(
                "Game %s reported final without scores; completion deferred",
                canonical.external_id,
            )

        if not canonical.has_teams:
            logger.warning("Skipping game %s - missing team data", canonical.external_id)
            return "skipped", []

        home_team_id = team_map.get(canonical.home_team_abbrev)
        away_team_id = team_map.get(canonical.away_team_abbrev)
        if home_team_id is None or away_team_id is None:
            logger.warning(
                "Skipping game %s - team not found in database (%s @ %s)",
                canonical.external_id,
                canonical.away_team_abbrev,
                canonical.home_team_abbrev,
            )
            return "skipped", []

        now = self._clock()
        # A final without scores cannot be settled yet; leave it open for the next sync.
        reported_final = canonical.is_final and canonical.has_scores
        game = (
            db.query(Game)
            .filter(Game.espn_game_id == canonical.external_id)
            .one_or_none()
        )

        if game is None:
            if canonical.week != week:
                logger.warning(
                    "Game %s reported week %s while syncing week %s; using reported week",
                    canonical.external_id,
                    canonical.week,
                    week,
                )
            game = Game(
                season_year=season_year,
                week=canonical.week,
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                espn_game_id=canonical.external_id,
                home_score=canonical.home_score,
                away_score=canonical.away_score,
                is_final=reported_final,
                game_time=canonical.start_time_utc,
                status_detail=canonical.status_detail,
                last_updated=now,
            )
            db.add(game)
            db.flush()
            previous_home = previous_away = None
            current_home, current_away = canonical.home_score, canonical.away_score
            was_final = False
            outcome = "inserted"
            logger.info("Inserted game espn_game_id=%s", canonical.external_id)
        else:
            previous_home = game.home_score
            previous_away = game.away_score
            was_final = bool(game.is_final)
            if canonical.has_scores or (previous_home is None and previous_away is None):
                current_home, current_away = canonical.home_score, canonical.away_score
            else:
                # Scores never go back to unknown; keep the stored ones.
                logger.warning(
                    "Game %s reported no scores; keeping stored %s-%s",
                    canonical.external_id,
                    previous_home,
                    previous_away,
                )
                current_home, current_away = previous_home, previous_away
            game.home_score = current_home
            game.away_score = current_away
            # Final is sticky; a provider regression must not re-trigger completion.
            game.is_final = was_final or reported_final
            game.game_time = canonical.start_time_utc
            game.status_detail = canonical.status_detail
            game.last_updated = now
            outcome = None

        score_changed = previous_home != current_home or previous_away != current_away
        just_completed = not was_final and reported_final
        if outcome is None:
            outcome = "updated" if (score_changed or just_completed) else "unchanged"

        if not (score_changed or just_completed):
            return outcome, []

        events = self._scoring_events(
            game, canonical, previous_home, previous_away, current_home, current_away
        )
        db.add_all(events)
        db.flush()
        if just_completed:
            events.extend(self._completion_events(db, game, canonical))
        return outcome, events

    def _scoring_events(
        self,
        game: Game,
        canonical: CanonicalGame,
        previous_home: int | None,
        previous_away: int | None,
        current_home: int | None,
        current_away: int | None,
    ) -> list[GameEvent]:
        events: list[GameEvent] = []
        for change in diff_scores(previous_home, previous_away, current_home, current_away):
            if change.side == "home":
                team_id, team_name = game.home_team_id, canonical.home_team_name
            else:
                team_id, team_name = game.away_team_id, canonical.away_team_name
            events.append(
                GameEvent(
                    game_id=game.id,
                    event_type=change.event_type,
                    team_id=team_id,
                    description=scoring_description(team_name, change.points),
                    score_home=change.score_home,
                    score_away=change.score_away,
                )
            )
        return events

    def _completion_events(
        self,
        db: Session,
        game: Game,
        canonical: CanonicalGame,
    ) -> list[GameEvent]:
        home_score = canonical.home_score
        away_score = canonical.away_score
        if home_score > away_score:
            winner_id, winner_name = game.home_team_id, canonical.home_team_name
        elif away_score > home_score:
            winner_id, winner_name = game.away_team_id, canonical.away_team_name
        else:
            winner_id, winner_name = None, None

        events = [
            GameEvent(
                game_id=game.id,
                event_type=GAME_END,
                team_id=winner_id,
                description=final_description(winner_name, home_score, away_score),
                score_home=home_score,
                score_away=away_score,
            )
        ]
        db.add_all(events)
        db.flush()
        events.extend(self.elimination.process_completion(db, game.id, home_score, away_score))
        return events
