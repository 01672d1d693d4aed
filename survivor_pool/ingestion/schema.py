"""Canonical game contract shared by the ESPN adapter and the synchronizer."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CanonicalGame(BaseModel):
    """
    One provider game, validated and normalized at the adapter boundary.
    """

    # Required fields
    provider: str = "espn"
    external_id: str = Field(min_length=1)
    season_year: int
    week: int = Field(ge=1)
    start_time_utc: datetime
    is_final: bool = False

    # Optional fields
    home_team_external_id: Optional[str] = None
    away_team_external_id: Optional[str] = None
    home_team_abbrev: Optional[str] = None
    away_team_abbrev: Optional[str] = None
    home_team_name: str = "TBD"
    away_team_name: str = "TBD"
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status_detail: str = ""

    @property
    def has_teams(self) -> bool:
        return bool(self.home_team_abbrev and self.away_team_abbrev)

    @property
    def has_scores(self) -> bool:
        return self.home_score is not None and self.away_score is not None
