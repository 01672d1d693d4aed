"""Process-wide service wiring, built once at startup and passed explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from survivor_pool.db import SessionLocal
from survivor_pool.ingestion.espn_client import fetch_week
from survivor_pool.ingestion.sync import Fetcher, GameSynchronizer
from survivor_pool.notifications import NotificationHub
from survivor_pool.picks.elimination import EliminationProcessor
from survivor_pool.rate_limiter import RateLimiter


@dataclass
class AppContext:
    session_factory: Callable[[], Session]
    rate_limiter: RateLimiter
    hub: NotificationHub
    synchronizer: GameSynchronizer


def build_context(
    session_factory: Callable[[], Session] = SessionLocal,
    fetcher: Fetcher = fetch_week,
    eliminate_on_tie: bool = False,
) -> AppContext:
    rate_limiter = RateLimiter()
    hub = NotificationHub()
    synchronizer = GameSynchronizer(
        session_factory=session_factory,
        rate_limiter=rate_limiter,
        fetcher=fetcher,
        elimination=EliminationProcessor(eliminate_on_tie=eliminate_on_tie),
        sink=hub,
    )
    return AppContext(
        session_factory=session_factory,
        rate_limiter=rate_limiter,
        hub=hub,
        synchronizer=synchronizer,
    )
