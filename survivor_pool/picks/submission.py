from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from survivor_pool.models import LeagueMember, Pick, Team
from survivor_pool.season import WeekResolver, ensure_utc, utcnow

logger = logging.getLogger(__name__)


class PickRejected(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def used_team_ids(db: Session, member_id: int, exclude_week: int | None = None) -> list[int]:
    """Teams a member has already picked, optionally ignoring one week."""
    query = db.query(Pick.team_id).filter(Pick.league_member_id == member_id)
    if exclude_week is not None:
        query = query.filter(Pick.week != exclude_week)
    return [team_id for (team_id,) in query.order_by(Pick.week.asc()).all()]


def current_pick(db: Session, member_id: int, week: int) -> Pick | None:
    return (
        db.query(Pick)
        .filter(Pick.league_member_id == member_id, Pick.week == week)
        .one_or_none()
    )


def submit_pick(
    db: Session,
    member_id: int,
    team_id: int,
    week: int,
    resolver: WeekResolver,
    *,
    league_id: int | None = None,
    now: datetime | None = None,
) -> Pick:
    """Create or replace a member's pick for the pickable week.

    The same team may not be used twice across weeks; changing the pick for
    the current week is allowed until the week locks. Commits on success.
    """

    now = ensure_utc(now or utcnow())
    member = db.get(LeagueMember, member_id)
    if member is None or (league_id is not None and member.league_id != league_id):
        raise PickRejected("Not a member of this league", status_code=403)
    if member.is_eliminated:
        raise PickRejected("You have been eliminated from this league", status_code=403)

    if week != resolver.pickable_week(now):
        raise PickRejected("Invalid week for picks")
    if now >= resolver.pick_deadline(week):
        raise PickRejected("Pick deadline has passed")

    if db.get(Team, team_id) is None:
        raise PickRejected("Unknown team", status_code=404)
    if team_id in used_team_ids(db, member_id, exclude_week=week):
        raise PickRejected("You have already used this team")

    pick = current_pick(db, member_id, week)
    if pick is None:
        pick = Pick(league_member_id=member_id, week=week, team_id=team_id)
        db.add(pick)
        logger.info("Created pick member_id=%s week=%s team_id=%s", member_id, week, team_id)
    else:
        pick.team_id = team_id
        logger.info("Updated pick member_id=%s week=%s team_id=%s", member_id, week, team_id)
    db.commit()
    db.refresh(pick)
    return pick
