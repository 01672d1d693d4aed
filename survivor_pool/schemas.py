from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class TeamOut(BaseModel):
    id: int
    name: str
    abbreviation: str

    class Config:
        from_attributes = True


class EventGameOut(BaseModel):
    id: int
    week: int
    season_year: int
    home_team: Optional[TeamOut]
    away_team: Optional[TeamOut]

    class Config:
        from_attributes = True


class ScoreOut(BaseModel):
    home: Optional[int]
    away: Optional[int]


class GameEventRecord(BaseModel):
    """Payload handed to the notification sink for one game event."""

    id: int
    type: str
    description: str
    team: Optional[TeamOut]
    game: EventGameOut
    score: ScoreOut
    league_member_id: Optional[int] = None
    timestamp: datetime


class GameOut(BaseModel):
    id: int
    season_year: int
    week: int
    espn_game_id: str
    game_time: Optional[datetime]
    home_team: TeamOut
    away_team: TeamOut
    home_score: Optional[int]
    away_score: Optional[int]
    is_final: bool
    status_detail: Optional[str]
    last_updated: Optional[datetime]

    class Config:
        from_attributes = True


class PickIn(BaseModel):
    league_member_id: int
    team_id: int
    week: int = Field(ge=1, le=18)


class PickOut(BaseModel):
    id: int
    league_member_id: int
    week: int
    team_id: int
    team: Optional[TeamOut]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CurrentWeekResponse(BaseModel):
    current_week: int
    pickable_week: int
    picks_locked: bool
    picks_unlock_time: Optional[datetime]
    pick_deadline: Optional[datetime]
    games: list[GameOut]
    used_team_ids: list[int] = []
    current_pick: Optional[PickOut] = None
    is_eliminated: Optional[bool] = None


class SyncResponse(BaseModel):
    success: bool
    skipped: bool = False
    message: str
    result: Optional[dict[str, Any]] = None
    timestamp: datetime


class RecentEventsResponse(BaseModel):
    events: list[dict[str, Any]]
    count: int
