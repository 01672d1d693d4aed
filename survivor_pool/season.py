"""NFL season calendar: maps wall-clock time to season and pickable weeks."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Mapping, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from survivor_pool.models import Game

REGULAR_SEASON_WEEKS = 18
WEEK = timedelta(days=7)
LEAGUE_TIMEZONE = "America/New_York"

# Thursday night kickoff locks the week, Monday night's final whistle reopens picks.
LOCK_DAY_OFFSET = 0
LOCK_LOCAL_TIME = time(20, 20)
UNLOCK_DAY_OFFSET = 4
UNLOCK_LOCAL_TIME = time(23, 30)
GAME_LENGTH_ALLOWANCE = timedelta(hours=4)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WeekResolver:
    """Pure calendar arithmetic over a fixed season epoch.

    ``kickoffs`` maps a week number to the provider's kickoff times for that
    week. When a week has known kickoffs the lock is the first kickoff and the
    unlock is the last kickoff plus ``GAME_LENGTH_ALLOWANCE``; otherwise both
    fall back to the league's usual Thursday/Monday night slots, computed in
    the league timezone so DST transitions are honoured.
    """

    def __init__(
        self,
        epoch: datetime,
        tz: str = LEAGUE_TIMEZONE,
        kickoffs: Mapping[int, Sequence[datetime]] | None = None,
    ) -> None:
        self.epoch = ensure_utc(epoch)
        self.tz = ZoneInfo(tz)
        self._kickoffs = {
            week: sorted(ensure_utc(value) for value in values)
            for week, values in (kickoffs or {}).items()
            if values
        }

    def week_start(self, week: int) -> datetime:
        return self.epoch + (week - 1) * WEEK

    def current_week(self, now: datetime) -> int:
        now = ensure_utc(now)
        if now < self.epoch:
            return 0
        weeks_since_start = (now - self.epoch) // WEEK
        if weeks_since_start >= REGULAR_SEASON_WEEKS:
            return 0
        return weeks_since_start + 1

    def _local_slot(self, week: int, day_offset: int, local_time: time) -> datetime:
        day: date = (self.week_start(week) + timedelta(days=day_offset)).date()
        local = datetime.combine(day, local_time, tzinfo=self.tz)
        return local.astimezone(timezone.utc)

    def pick_lock_instant(self, week: int) -> datetime:
        kickoffs = self._kickoffs.get(week)
        if kickoffs:
            return kickoffs[0]
        return self._local_slot(week, LOCK_DAY_OFFSET, LOCK_LOCAL_TIME)

    def pick_unlock_instant(self, week: int) -> datetime:
        kickoffs = self._kickoffs.get(week)
        if not kickoffs:
            return self._local_slot(week, UNLOCK_DAY_OFFSET, UNLOCK_LOCAL_TIME)
        unlock = kickoffs[-1] + GAME_LENGTH_ALLOWANCE
        # Never bleed into the following week.
        return min(unlock, self.week_start(week + 1))

    def pickable_week(self, now: datetime) -> int:
        now = ensure_utc(now)
        current = self.current_week(now)
        if current == 0:
            return 1
        if now < self.pick_lock_instant(current):
            return current
        if now >= self.pick_unlock_instant(current) and current < REGULAR_SEASON_WEEKS:
            return current + 1
        return 0

    def picks_locked(self, now: datetime) -> bool:
        return self.current_week(now) > 0 and self.pickable_week(now) == 0

    def pick_deadline(self, week: int) -> datetime:
        return self.pick_lock_instant(week)

    def picks_unlock_time(self, now: datetime) -> datetime | None:
        if not self.picks_locked(now):
            return None
        return self.pick_unlock_instant(self.current_week(now))


def load_kickoffs(db: Session, season_year: int) -> dict[int, list[datetime]]:
    """Group stored kickoff times by week for a season."""

    rows = (
        db.query(Game.week, Game.game_time)
        .filter(Game.season_year == season_year, Game.game_time.isnot(None))
        .all()
    )
    kickoffs: dict[int, list[datetime]] = defaultdict(list)
    for week, game_time in rows:
        kickoffs[week].append(ensure_utc(game_time))
    return dict(kickoffs)


def build_resolver(db: Session, epoch: datetime, season_year: int) -> WeekResolver:
    return WeekResolver(epoch, kickoffs=load_kickoffs(db, season_year))
