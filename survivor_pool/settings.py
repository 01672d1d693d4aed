from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from survivor_pool.models import AppSettings
from survivor_pool.season import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_SEASON_YEAR = 2025
# Start of week 1: the Thursday of the opening game, 00:00 UTC.
DEFAULT_SEASON_EPOCH = datetime(2025, 9, 4, tzinfo=timezone.utc)
REGULAR_SEASON_TYPE = 2


@dataclass(frozen=True)
class SettingsSnapshot:
    id: int
    season_year: int
    season_epoch_utc: datetime
    season_type: int
    auto_sync_enabled: bool
    auto_sync_interval_seconds: int
    sync_rate_limit_max: int
    sync_rate_limit_window_seconds: int


def _env_epoch() -> datetime:
    raw = (os.getenv("SEASON_EPOCH") or "").strip()
    if not raw:
        return DEFAULT_SEASON_EPOCH
    try:
        return ensure_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        logger.error("Invalid SEASON_EPOCH=%s, falling back to %s", raw, DEFAULT_SEASON_EPOCH)
        return DEFAULT_SEASON_EPOCH


def _default_settings() -> AppSettings:
    return AppSettings(
        id=1,
        season_year=int(os.getenv("SEASON_YEAR", str(DEFAULT_SEASON_YEAR))),
        season_epoch_utc=_env_epoch(),
        season_type=REGULAR_SEASON_TYPE,
        auto_sync_enabled=os.getenv("AUTO_SYNC_ENABLED", "true").lower() == "true",
        auto_sync_interval_seconds=int(os.getenv("AUTO_SYNC_INTERVAL_SECONDS", "300")),
        sync_rate_limit_max=1,
        sync_rate_limit_window_seconds=60,
        updated_at_utc=datetime.now(timezone.utc),
    )


def get_or_create_settings(db) -> AppSettings:
    settings = db.query(AppSettings).filter(AppSettings.id == 1).one_or_none()
    if settings:
        return settings
    settings = _default_settings()
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def snapshot_settings(settings: AppSettings) -> SettingsSnapshot:
    return SettingsSnapshot(
        id=settings.id,
        season_year=settings.season_year,
        # SQLite drops tzinfo on the way back out.
        season_epoch_utc=ensure_utc(settings.season_epoch_utc),
        season_type=settings.season_type,
        auto_sync_enabled=settings.auto_sync_enabled,
        auto_sync_interval_seconds=settings.auto_sync_interval_seconds,
        sync_rate_limit_max=settings.sync_rate_limit_max,
        sync_rate_limit_window_seconds=settings.sync_rate_limit_window_seconds,
    )


def load_settings_snapshot(session_factory) -> SettingsSnapshot:
    with session_factory() as db:
        return snapshot_settings(get_or_create_settings(db))
