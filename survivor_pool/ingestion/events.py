"""Turn score transitions into discrete game events."""

from __future__ import annotations

from dataclasses import dataclass

TOUCHDOWN = "touchdown"
FIELD_GOAL = "field_goal"
SAFETY = "safety"
SCORE = "score"
GAME_END = "game_end"
ELIMINATION = "elimination"

EVENT_TYPES = (TOUCHDOWN, FIELD_GOAL, SAFETY, SCORE, GAME_END, ELIMINATION)

# Best effort: the scoreboard only exposes totals, not plays. A touchdown
# polled together with its try shows up as 7 or 8.
_DELTA_TYPES = {
    6: TOUCHDOWN,
    7: TOUCHDOWN,
    8: TOUCHDOWN,
    3: FIELD_GOAL,
    2: SAFETY,
}


@dataclass(frozen=True)
class ScoringChange:
    side: str  # "home" | "away"
    event_type: str
    points: int
    score_home: int
    score_away: int


def classify_delta(points: int) -> str:
    return _DELTA_TYPES.get(points, SCORE)


def diff_scores(
    previous_home: int | None,
    previous_away: int | None,
    current_home: int | None,
    current_away: int | None,
) -> list[ScoringChange]:
    """Return one change per side whose score went up, home first.

    Missing previous scores count as zero; missing current scores mean the
    game has not started and produce nothing.
    """

    if current_home is None or current_away is None:
        return []

    changes: list[ScoringChange] = []
    for side, previous, current in (
        ("home", previous_home or 0, current_home),
        ("away", previous_away or 0, current_away),
    ):
        points = current - previous
        if points > 0:
            changes.append(
                ScoringChange(
                    side=side,
                    event_type=classify_delta(points),
                    points=points,
                    score_home=current_home,
                    score_away=current_away,
                )
            )
    return changes


def scoring_description(team_name: str, points: int) -> str:
    return f"{team_name} scored {points} points"


def final_description(winner_name: str | None, home_score: int, away_score: int) -> str:
    high, low = max(home_score, away_score), min(home_score, away_score)
    if winner_name is None:
        return f"Game ends in a {high}-{low} tie"
    return f"{winner_name} wins {high}-{low}"
