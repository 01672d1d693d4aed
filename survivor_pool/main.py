from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from survivor_pool.context import AppContext, build_context
from survivor_pool.db import Base, SessionLocal, engine, get_db
from survivor_pool.ingestion.seed import upsert_teams
from survivor_pool.models import Game, LeagueMember
from survivor_pool.picks.submission import (
    PickRejected,
    current_pick,
    submit_pick,
    used_team_ids,
)
from survivor_pool.schemas import (
    CurrentWeekResponse,
    GameOut,
    PickIn,
    PickOut,
    RecentEventsResponse,
    SyncResponse,
)
from survivor_pool.season import build_resolver, utcnow
from survivor_pool.settings import get_or_create_settings, snapshot_settings

app = FastAPI(title="Survivor Pool")
logger = logging.getLogger(__name__)
_auto_sync_task: asyncio.Task | None = None
_auto_sync_stop: asyncio.Event | None = None


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def _run_auto_sync_once(context: AppContext) -> None:
    result = await asyncio.to_thread(context.synchronizer.sync_current_week)
    if result.was_skipped:
        logger.info("Auto-sync skipped: reason=%s", result.reason)
        return
    logger.info(
        "Auto-sync done: week=%s fetched=%s inserted=%s updated=%s errors=%s events=%s",
        result.week,
        result.total_fetched,
        result.inserted,
        result.updated,
        result.errors,
        result.events,
    )


async def _auto_sync_loop(context: AppContext, interval_seconds: int) -> None:
    if interval_seconds < 60:
        logger.error("Auto-sync interval must be >= 60 seconds.")
        return

    logger.info("Auto-sync enabled: interval=%s seconds", interval_seconds)
    while _auto_sync_stop and not _auto_sync_stop.is_set():
        try:
            await _run_auto_sync_once(context)
        except Exception:
            logger.exception("Auto-sync failed.")
        context.rate_limiter.cleanup()
        try:
            await asyncio.wait_for(_auto_sync_stop.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue


@app.on_event("startup")
async def start_auto_sync() -> None:
    global _auto_sync_task, _auto_sync_stop
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        upsert_teams(db)
        settings = snapshot_settings(get_or_create_settings(db))

    context = build_context(session_factory=SessionLocal)
    app.state.context = context
    logger.info("App starting up, season=%s", settings.season_year)

    enabled = os.getenv("AUTO_SYNC_ENABLED", "true").lower() == "true"
    if not (enabled and settings.auto_sync_enabled):
        logger.info("Auto-sync disabled.")
        return
    _auto_sync_stop = asyncio.Event()
    _auto_sync_task = asyncio.create_task(
        _auto_sync_loop(context, settings.auto_sync_interval_seconds)
    )


@app.on_event("shutdown")
async def stop_auto_sync() -> None:
    global _auto_sync_task, _auto_sync_stop
    if _auto_sync_stop:
        _auto_sync_stop.set()
    if _auto_sync_task:
        await _auto_sync_task
    _auto_sync_task = None
    _auto_sync_stop = None


@app.api_route("/api/sync-games", methods=["GET", "POST"], response_model=SyncResponse)
async def api_sync_games(context: AppContext = Depends(get_context)):
    try:
        result = await asyncio.to_thread(context.synchronizer.sync_current_week)
    except Exception as exc:
        logger.exception("Game sync failed")
        body = SyncResponse(
            success=False,
            message=str(exc) or "Game sync failed",
            timestamp=datetime.now(timezone.utc),
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    if result.was_skipped:
        message = f"Game sync skipped: {result.reason}"
    else:
        message = "Game data sync completed successfully"
    return SyncResponse(
        success=True,
        skipped=result.was_skipped,
        message=message,
        result=result.as_dict(),
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/api/games/current-week", response_model=CurrentWeekResponse)
def api_current_week(
    league_member_id: int | None = None,
    db: Session = Depends(get_db),
):
    settings = snapshot_settings(get_or_create_settings(db))
    resolver = build_resolver(db, settings.season_epoch_utc, settings.season_year)
    now = utcnow()
    current_week = resolver.current_week(now)
    pickable_week = resolver.pickable_week(now)

    games: list[Game] = []
    if pickable_week > 0:
        games = (
            db.query(Game)
            .filter(Game.season_year == settings.season_year, Game.week == pickable_week)
            .order_by(Game.game_time.asc())
            .all()
        )

    response = CurrentWeekResponse(
        current_week=current_week,
        pickable_week=pickable_week,
        picks_locked=resolver.picks_locked(now),
        picks_unlock_time=resolver.picks_unlock_time(now),
        pick_deadline=resolver.pick_deadline(pickable_week) if pickable_week > 0 else None,
        games=[GameOut.model_validate(game) for game in games],
    )

    if league_member_id is not None:
        member = db.get(LeagueMember, league_member_id)
        if member is None:
            raise HTTPException(status_code=404, detail="League member not found")
        pick = current_pick(db, member.id, pickable_week) if pickable_week > 0 else None
        response.used_team_ids = used_team_ids(db, member.id)
        response.current_pick = PickOut.model_validate(pick) if pick else None
        response.is_eliminated = member.is_eliminated
    return response


@app.post("/api/leagues/{league_id}/picks", response_model=PickOut)
def api_submit_pick(league_id: int, payload: PickIn, db: Session = Depends(get_db)):
    settings = snapshot_settings(get_or_create_settings(db))
    resolver = build_resolver(db, settings.season_epoch_utc, settings.season_year)
    try:
        pick = submit_pick(
            db,
            payload.league_member_id,
            payload.team_id,
            payload.week,
            resolver,
            league_id=league_id,
        )
    except PickRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return PickOut.model_validate(pick)


@app.get("/api/events/recent", response_model=RecentEventsResponse)
def api_recent_events(
    limit: int = 20,
    teams: str | None = None,
    context: AppContext = Depends(get_context),
):
    team_filter = None
    if teams:
        team_filter = [abbr.strip() for abbr in teams.split(",") if abbr.strip()]
    events = context.hub.recent(limit=limit, team_abbreviations=team_filter)
    return RecentEventsResponse(events=events, count=len(events))
