"""Seed or refresh NFL team reference rows."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from survivor_pool.db import Base, SessionLocal, engine
from survivor_pool.ingestion.teams import NFL_TEAMS
from survivor_pool.models import Team

logger = logging.getLogger(__name__)


def upsert_teams(db: Session) -> tuple[int, int]:
    """Insert missing teams and refresh changed ones, keyed by abbreviation."""

    existing = {team.abbreviation: team for team in db.query(Team).all()}
    inserted = 0
    updated = 0
    for entry in NFL_TEAMS:
        team = existing.get(entry.abbreviation)
        if team is None:
            db.add(
                Team(
                    espn_id=entry.espn_id,
                    abbreviation=entry.abbreviation,
                    name=entry.name,
                    conference=entry.conference,
                    division=entry.division,
                )
            )
            inserted += 1
            continue
        changed = False
        for field in ("espn_id", "name", "conference", "division"):
            value = getattr(entry, field)
            if getattr(team, field) != value:
                setattr(team, field, value)
                changed = True
        if changed:
            updated += 1
    db.commit()
    return inserted, updated


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        inserted, updated = upsert_teams(db)
    logger.info("Teams seeded: inserted=%s updated=%s", inserted, updated)


if __name__ == "__main__":
    main()
