"""Shared fixtures for database-backed tests."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from survivor_pool.db import Base
from survivor_pool.ingestion.schema import CanonicalGame
from survivor_pool.ingestion.seed import upsert_teams
from survivor_pool.models import League, LeagueMember, Pick, Team
from survivor_pool.settings import SettingsSnapshot

SEASON_EPOCH = datetime(2025, 9, 4, tzinfo=timezone.utc)
KICKOFF = datetime(2025, 9, 5, 0, 20, tzinfo=timezone.utc)


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with session_factory() as db:
        upsert_teams(db)
    return session_factory


def make_settings(**overrides) -> SettingsSnapshot:
    values = {
        "id": 1,
        "season_year": 2025,
        "season_epoch_utc": SEASON_EPOCH,
        "season_type": 2,
        "auto_sync_enabled": False,
        "auto_sync_interval_seconds": 300,
        "sync_rate_limit_max": 1,
        "sync_rate_limit_window_seconds": 60,
    }
    values.update(overrides)
    return SettingsSnapshot(**values)


def canonical_game(
    external_id: str = "401772510",
    home_score: int | None = None,
    away_score: int | None = None,
    is_final: bool = False,
    home_abbrev: str | None = "KC",
    away_abbrev: str | None = "DET",
    week: int = 1,
) -> CanonicalGame:
    return CanonicalGame(
        external_id=external_id,
        season_year=2025,
        week=week,
        start_time_utc=KICKOFF,
        is_final=is_final,
        home_team_abbrev=home_abbrev,
        away_team_abbrev=away_abbrev,
        home_team_name="Kansas City Chiefs",
        away_team_name="Detroit Lions",
        home_score=home_score,
        away_score=away_score,
        status_detail="Final" if is_final else "",
    )


def team_id(db, abbreviation: str) -> int:
    return db.query(Team.id).filter(Team.abbreviation == abbreviation).scalar()


def add_member(
    db,
    league: League,
    user_id: str,
    picks: dict[int, str] | None = None,
    is_eliminated: bool = False,
) -> LeagueMember:
    member = LeagueMember(league_id=league.id, user_id=user_id, is_eliminated=is_eliminated)
    db.add(member)
    db.flush()
    for week, abbreviation in (picks or {}).items():
        db.add(Pick(league_member_id=member.id, week=week, team_id=team_id(db, abbreviation)))
    db.flush()
    return member


def add_league(db, name: str = "Office Pool", season_year: int = 2025) -> League:
    league = League(name=name, season_year=season_year)
    db.add(league)
    db.flush()
    return league
