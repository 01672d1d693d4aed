"""NFL team reference table and ESPN id mapping."""

from __future__ import annotations

from typing import NamedTuple


class NflTeam(NamedTuple):
    espn_id: str
    abbreviation: str
    name: str
    conference: str
    division: str


NFL_TEAMS: tuple[NflTeam, ...] = (
    NflTeam("22", "ARI", "Arizona Cardinals", "NFC", "West"),
    NflTeam("1", "ATL", "Atlanta Falcons", "NFC", "South"),
    NflTeam("33", "BAL", "Baltimore Ravens", "AFC", "North"),
    NflTeam("2", "BUF", "Buffalo Bills", "AFC", "East"),
    NflTeam("29", "CAR", "Carolina Panthers", "NFC", "South"),
    NflTeam("3", "CHI", "Chicago Bears", "NFC", "North"),
    NflTeam("4", "CIN", "Cincinnati Bengals", "AFC", "North"),
    NflTeam("5", "CLE", "Cleveland Browns", "AFC", "North"),
    NflTeam("6", "DAL", "Dallas Cowboys", "NFC", "East"),
    NflTeam("7", "DEN", "Denver Broncos", "AFC", "West"),
    NflTeam("8", "DET", "Detroit Lions", "NFC", "North"),
    NflTeam("9", "GB", "Green Bay Packers", "NFC", "North"),
    NflTeam("34", "HOU", "Houston Texans", "AFC", "South"),
    NflTeam("11", "IND", "Indianapolis Colts", "AFC", "South"),
    NflTeam("30", "JAX", "Jacksonville Jaguars", "AFC", "South"),
    NflTeam("12", "KC", "Kansas City Chiefs", "AFC", "West"),
    NflTeam("13", "LV", "Las Vegas Raiders", "AFC", "West"),
    NflTeam("24", "LAC", "Los Angeles Chargers", "AFC", "West"),
    NflTeam("14", "LAR", "Los Angeles Rams", "NFC", "West"),
    NflTeam("15", "MIA", "Miami Dolphins", "AFC", "East"),
    NflTeam("16", "MIN", "Minnesota Vikings", "NFC", "North"),
    NflTeam("17", "NE", "New England Patriots", "AFC", "East"),
    NflTeam("18", "NO", "New Orleans Saints", "NFC", "South"),
    NflTeam("19", "NYG", "New York Giants", "NFC", "East"),
    NflTeam("20", "NYJ", "New York Jets", "AFC", "East"),
    NflTeam("21", "PHI", "Philadelphia Eagles", "NFC", "East"),
    NflTeam("23", "PIT", "Pittsburgh Steelers", "AFC", "North"),
    NflTeam("25", "SF", "San Francisco 49ers", "NFC", "West"),
    NflTeam("26", "SEA", "Seattle Seahawks", "NFC", "West"),
    NflTeam("27", "TB", "Tampa Bay Buccaneers", "NFC", "South"),
    NflTeam("10", "TEN", "Tennessee Titans", "AFC", "South"),
    NflTeam("28", "WAS", "Washington Commanders", "NFC", "East"),
)

ESPN_TEAM_MAPPING: dict[str, str] = {team.espn_id: team.abbreviation for team in NFL_TEAMS}


def espn_team_abbreviation(espn_team_id: str | None) -> str | None:
    """Return our abbreviation for an ESPN team id, or None when unknown."""

    if espn_team_id is None:
        return None
    return ESPN_TEAM_MAPPING.get(str(espn_team_id).strip())
