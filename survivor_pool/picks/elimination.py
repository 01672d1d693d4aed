"""Eliminate league members whose pick lost."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from survivor_pool.ingestion.events import ELIMINATION
from survivor_pool.models import Game, GameEvent, League, LeagueMember, Pick, Team

logger = logging.getLogger(__name__)


class EliminationProcessor:
    """Apply survivor elimination for one completed game.

    Safe to run repeatedly for the same game: members that are already
    eliminated are filtered out before the update, so a retried sync neither
    re-eliminates nor re-emits. The caller owns the transaction; this only
    flushes, so a failed flush rolls back together with the game's final
    state and the completion is retried on the next sync.

    Ties eliminate nobody unless ``eliminate_on_tie`` is set, in which case
    holders of either team are eliminated.
    """

    def __init__(self, eliminate_on_tie: bool = False) -> None:
        self.eliminate_on_tie = eliminate_on_tie

    def losing_team_ids(self, game: Game, home_score: int, away_score: int) -> list[int]:
        if home_score > away_score:
            return [game.away_team_id]
        if away_score > home_score:
            return [game.home_team_id]
        if self.eliminate_on_tie:
            return [game.home_team_id, game.away_team_id]
        return []

    def process_completion(
        self,
        db: Session,
        game_id: int,
        home_score: int,
        away_score: int,
    ) -> list[GameEvent]:
        game = db.get(Game, game_id)
        if game is None:
            logger.warning("Elimination skipped: game_id=%s not found", game_id)
            return []

        losing_team_ids = self.losing_team_ids(game, home_score, away_score)
        if not losing_team_ids:
            logger.info(
                "Game game_id=%s ended in a %s-%s tie, no eliminations",
                game_id,
                home_score,
                away_score,
            )
            return []

        events: list[GameEvent] = []
        for team_id in losing_team_ids:
            events.extend(self._eliminate_holders(db, game, team_id, home_score, away_score))
        return events

    def _pending_member_ids(self, db: Session, game: Game, team_id: int) -> list[int]:
        rows = (
            db.query(LeagueMember.id)
            .join(Pick, Pick.league_member_id == LeagueMember.id)
            .join(League, League.id == LeagueMember.league_id)
            .filter(
                Pick.team_id == team_id,
                Pick.week == game.week,
                League.season_year == game.season_year,
                LeagueMember.is_eliminated.is_(False),
            )
            .order_by(LeagueMember.id.asc())
            .distinct()
            .all()
        )
        return [member_id for (member_id,) in rows]

    def _eliminate_holders(
        self,
        db: Session,
        game: Game,
        team_id: int,
        home_score: int,
        away_score: int,
    ) -> list[GameEvent]:
        member_ids = self._pending_member_ids(db, game, team_id)
        if not member_ids:
            return []

        updated = (
            db.query(LeagueMember)
            .filter(
                LeagueMember.id.in_(member_ids),
                LeagueMember.is_eliminated.is_(False),
            )
            .update(
                {
                    LeagueMember.is_eliminated: True,
                    LeagueMember.eliminated_week: game.week,
                },
                synchronize_session="fetch",
            )
        )
        if updated != len(member_ids):
            logger.warning(
                "Elimination race on game_id=%s: expected=%s updated=%s",
                game.id,
                len(member_ids),
                updated,
            )

        team = db.get(Team, team_id)
        team_name = team.name if team is not None else f"team {team_id}"
        events = [
            GameEvent(
                game_id=game.id,
                event_type=ELIMINATION,
                team_id=team_id,
                league_member_id=member_id,
                description=(
                    f"Player eliminated by picking {team_name}, "
                    f"who lost in week {game.week}"
                ),
                score_home=home_score,
                score_away=away_score,
            )
            for member_id in member_ids
        ]
        db.add_all(events)
        db.flush()
        logger.info(
            "Eliminated %s players for game_id=%s team_id=%s week=%s",
            len(member_ids),
            game.id,
            team_id,
            game.week,
        )
        return events
