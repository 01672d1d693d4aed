from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    espn_id = Column(String, nullable=False, unique=True)
    abbreviation = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False, default="")
    conference = Column(String, nullable=False, default="")
    division = Column(String, nullable=False, default="")


class Game(Base):
    __tablename__ = "games"
    __table_args__ = (
        UniqueConstraint("espn_game_id", name="uq_games_espn_game_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    season_year = Column(Integer, nullable=False, index=True)
    week = Column(Integer, nullable=False, index=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    espn_game_id = Column(String, nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    is_final = Column(Boolean, nullable=False, default=False)
    game_time = Column(DateTime(timezone=True), nullable=True)
    status_detail = Column(String, nullable=False, default="")
    last_updated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    events = relationship("GameEvent", back_populates="game", order_by="GameEvent.id")


class GameEvent(Base):
    __tablename__ = "game_events"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    event_type = Column(String, nullable=False)  # touchdown | field_goal | safety | score | game_end | elimination
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    league_member_id = Column(Integer, ForeignKey("league_members.id"), nullable=True)
    description = Column(Text, nullable=False, default="")
    score_home = Column(Integer, nullable=True)
    score_away = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    game = relationship("Game", back_populates="events")
    team = relationship("Team")


class League(Base):
    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, default="")
    season_year = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("LeagueMember", back_populates="league")


class LeagueMember(Base):
    __tablename__ = "league_members"
    __table_args__ = (
        UniqueConstraint("league_id", "user_id", name="uq_league_members_league_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    # Only the elimination processor writes these two.
    is_eliminated = Column(Boolean, nullable=False, default=False)
    eliminated_week = Column(Integer, nullable=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    league = relationship("League", back_populates="members")
    picks = relationship("Pick", back_populates="member")


class Pick(Base):
    __tablename__ = "picks"
    __table_args__ = (
        UniqueConstraint("league_member_id", "week", name="uq_picks_member_week"),
    )

    id = Column(Integer, primary_key=True, index=True)
    league_member_id = Column(Integer, ForeignKey("league_members.id"), nullable=False, index=True)
    week = Column(Integer, nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    member = relationship("LeagueMember", back_populates="picks")
    team = relationship("Team")


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True)
    season_year = Column(Integer, nullable=False)
    season_epoch_utc = Column(DateTime(timezone=True), nullable=False)
    season_type = Column(Integer, nullable=False, default=2)  # ESPN seasontype: 2 = regular season
    auto_sync_enabled = Column(Boolean, nullable=False, default=True)
    auto_sync_interval_seconds = Column(Integer, nullable=False, default=300)
    sync_rate_limit_max = Column(Integer, nullable=False, default=1)
    sync_rate_limit_window_seconds = Column(Integer, nullable=False, default=60)
    updated_at_utc = Column(DateTime(timezone=True), nullable=True)
