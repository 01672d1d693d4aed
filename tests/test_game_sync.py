from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from support import (
    add_league,
    add_member,
    canonical_game,
    make_session_factory,
    make_settings,
)

from survivor_pool.ingestion.espn_client import EspnFetchError
from survivor_pool.ingestion.sync import GameSynchronizer
from survivor_pool.models import Game, GameEvent, LeagueMember
from survivor_pool.notifications import NotificationHub
from survivor_pool.picks.elimination import EliminationProcessor
from survivor_pool.rate_limiter import RateLimiter

IN_WEEK_ONE = datetime(2025, 9, 5, 1, 0, tzinfo=timezone.utc)


class _StubFetcher:
    def __init__(self, games=None) -> None:
        self.games = list(games or [])
        self.calls: list[tuple[int, int, int]] = []

    def __call__(self, season: int, season_type: int, week: int):
        self.calls.append((season, season_type, week))
        return list(self.games)


class _TickingClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 9, 5, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


class _FailingOnce(EliminationProcessor):
    def __init__(self) -> None:
        super().__init__()
        self.failed = False

    def process_completion(self, db, game_id, home_score, away_score):
        if not self.failed:
            self.failed = True
            raise RuntimeError("database went away")
        return super().process_completion(db, game_id, home_score, away_score)


class GameSyncTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.fetcher = _StubFetcher()
        self.hub = NotificationHub()
        self.synchronizer = GameSynchronizer(
            session_factory=self.session_factory,
            rate_limiter=RateLimiter(),
            fetcher=self.fetcher,
            sink=self.hub,
            settings=make_settings(sync_rate_limit_max=100),
            clock=_TickingClock(),
        )

    def _events(self, db, event_type: str | None = None) -> list[GameEvent]:
        query = db.query(GameEvent)
        if event_type is not None:
            query = query.filter(GameEvent.event_type == event_type)
        return query.order_by(GameEvent.id.asc()).all()

    def test_scheduled_game_is_inserted_without_events(self) -> None:
        self.fetcher.games = [canonical_game()]

        result = self.synchronizer.sync_current_week(now=IN_WEEK_ONE)

        self.assertEqual("ok", result.status)
        self.assertEqual(1, result.week)
        self.assertEqual(1, result.inserted)
        self.assertEqual(0, result.events)
        self.assertEqual([(2025, 2, 1)], self.fetcher.calls)
        with self.session_factory() as db:
            game = db.query(Game).one()
            self.assertEqual("401772510", game.espn_game_id)
            self.assertIsNone(game.home_score)
            self.assertFalse(game.is_final)
            self.assertEqual([], self._events(db))

    def test_touchdown_is_detected_from_score_change(self) -> None:
        self.fetcher.games = [canonical_game(home_score=0, away_score=0)]
        self.synchronizer.sync_week(1)

        self.fetcher.games = [canonical_game(home_score=7, away_score=0)]
        result = self.synchronizer.sync_week(1)

        self.assertEqual(1, result.updated)
        self.assertEqual(1, result.events)
        with self.session_factory() as db:
            events = self._events(db)
            self.assertEqual(1, len(events))
            event = events[0]
            self.assertEqual("touchdown", event.event_type)
            self.assertEqual("KC", event.team.abbreviation)
            self.assertEqual((7, 0), (event.score_home, event.score_away))
            self.assertEqual("Kansas City Chiefs scored 7 points", event.description)

    def test_identical_resync_only_touches_last_updated(self) -> None:
        self.fetcher.games = [canonical_game(home_score=3, away_score=0)]
        self.synchronizer.sync_week(1)
        with self.session_factory() as db:
            first_seen = db.query(Game.last_updated).scalar()
            event_count = len(self._events(db))

        result = self.synchronizer.sync_week(1)

        self.assertEqual(1, result.unchanged)
        self.assertEqual(0, result.events)
        with self.session_factory() as db:
            game = db.query(Game).one()
            self.assertEqual((3, 0), (game.home_score, game.away_score))
            self.assertNotEqual(first_seen, game.last_updated)
            self.assertEqual(event_count, len(self._events(db)))

    def test_final_score_eliminates_losing_pickers_once(self) -> None:
        with self.session_factory() as db:
            league = add_league(db)
            loser = add_member(db, league, "loser", picks={1: "DET"})
            winner = add_member(db, league, "winner", picks={1: "KC"})
            already_out = add_member(db, league, "gone", picks={1: "DET"}, is_eliminated=True)
            db.commit()
            loser_id, winner_id, already_out_id = loser.id, winner.id, already_out.id

        self.fetcher.games = [canonical_game(home_score=17, away_score=10)]
        self.synchronizer.sync_week(1)
        self.fetcher.games = [canonical_game(home_score=24, away_score=17, is_final=True)]
        result = self.synchronizer.sync_week(1)

        self.assertEqual(1, result.eliminations)
        with self.session_factory() as db:
            game = db.query(Game).one()
            self.assertTrue(game.is_final)

            loser = db.get(LeagueMember, loser_id)
            self.assertTrue(loser.is_eliminated)
            self.assertEqual(1, loser.eliminated_week)
            self.assertFalse(db.get(LeagueMember, winner_id).is_eliminated)
            self.assertIsNone(db.get(LeagueMember, already_out_id).eliminated_week)

            eliminations = self._events(db, "elimination")
            self.assertEqual([loser_id], [event.league_member_id for event in eliminations])
            game_end = self._events(db, "game_end")
            self.assertEqual(1, len(game_end))
            self.assertEqual("KC", game_end[0].team.abbreviation)

        again = self.synchronizer.sync_week(1)

        self.assertEqual(0, again.events)
        with self.session_factory() as db:
            self.assertEqual(1, len(self._events(db, "elimination")))
            self.assertEqual(1, len(self._events(db, "game_end")))

    def test_provider_regression_keeps_game_final(self) -> None:
        self.fetcher.games = [canonical_game(home_score=24, away_score=17, is_final=True)]
        self.synchronizer.sync_week(1)

        self.fetcher.games = [canonical_game(home_score=24, away_score=17, is_final=False)]
        self.synchronizer.sync_week(1)

        with self.session_factory() as db:
            self.assertTrue(db.query(Game.is_final).scalar())
            self.assertEqual(1, len(self._events(db, "game_end")))

    def test_final_without_scores_is_not_settled(self) -> None:
        self.fetcher.games = [canonical_game(is_final=True)]

        result = self.synchronizer.sync_week(1)

        self.assertEqual(0, result.events)
        with self.session_factory() as db:
            self.assertFalse(db.query(Game.is_final).scalar())

    def test_game_first_seen_underway_is_diffed_from_zero(self) -> None:
        self.fetcher.games = [canonical_game(home_score=7, away_score=3)]

        result = self.synchronizer.sync_week(1)

        self.assertEqual(1, result.inserted)
        with self.session_factory() as db:
            events = self._events(db)
            self.assertEqual(
                [("touchdown", "KC"), ("field_goal", "DET")],
                [(event.event_type, event.team.abbreviation) for event in events],
            )
            for event in events:
                self.assertEqual((7, 3), (event.score_home, event.score_away))

    def test_missing_scores_do_not_wipe_stored_scores(self) -> None:
        self.fetcher.games = [canonical_game(home_score=14, away_score=7)]
        self.synchronizer.sync_week(1)

        self.fetcher.games = [canonical_game()]
        blank = self.synchronizer.sync_week(1)
        with self.session_factory() as db:
            game = db.query(Game).one()
            self.assertEqual((14, 7), (game.home_score, game.away_score))

        self.fetcher.games = [canonical_game(home_score=14, away_score=7)]
        again = self.synchronizer.sync_week(1)

        self.assertEqual(0, blank.events)
        self.assertEqual(0, again.events)
        self.assertEqual(1, again.unchanged)
        with self.session_factory() as db:
            self.assertEqual(2, len(self._events(db)))

    def test_new_game_uses_reported_week(self) -> None:
        self.fetcher.games = [canonical_game(week=2)]

        self.synchronizer.sync_week(1)

        with self.session_factory() as db:
            self.assertEqual(2, db.query(Game.week).scalar())

    def test_unknown_team_is_skipped_without_blocking_others(self) -> None:
        self.fetcher.games = [
            canonical_game(external_id="1", away_abbrev="XXX"),
            canonical_game(external_id="2", home_abbrev=None),
            canonical_game(external_id="3", home_abbrev="BUF", away_abbrev="MIA"),
        ]

        result = self.synchronizer.sync_week(1)

        self.assertEqual(3, result.total_fetched)
        self.assertEqual(2, result.skipped)
        self.assertEqual(1, result.inserted)
        with self.session_factory() as db:
            self.assertEqual(["3"], [game.espn_game_id for game in db.query(Game).all()])

    def test_failed_game_rolls_back_and_is_retried(self) -> None:
        with self.session_factory() as db:
            league = add_league(db)
            member_id = add_member(db, league, "loser", picks={1: "DET"}).id
            db.commit()

        self.fetcher.games = [
            canonical_game(home_score=10, away_score=7),
            canonical_game(external_id="2", home_abbrev="BUF", away_abbrev="MIA"),
        ]
        self.synchronizer.sync_week(1)

        self.synchronizer.elimination = _FailingOnce()
        self.fetcher.games[0] = canonical_game(home_score=24, away_score=17, is_final=True)
        failed = self.synchronizer.sync_week(1)

        self.assertEqual(1, failed.errors)
        self.assertEqual(1, failed.unchanged)
        with self.session_factory() as db:
            game = db.query(Game).filter(Game.espn_game_id == "401772510").one()
            self.assertFalse(game.is_final)
            self.assertEqual(10, game.home_score)
            self.assertFalse(db.get(LeagueMember, member_id).is_eliminated)

        retried = self.synchronizer.sync_week(1)

        self.assertEqual(0, retried.errors)
        self.assertEqual(1, retried.eliminations)
        with self.session_factory() as db:
            self.assertTrue(db.get(LeagueMember, member_id).is_eliminated)

    def test_events_reach_the_sink_in_order(self) -> None:
        with self.session_factory() as db:
            add_member(db, add_league(db), "loser", picks={1: "DET"})
            db.commit()
        received: list[str] = []
        self.hub.subscribe(lambda record: received.append(record["type"]))

        self.fetcher.games = [canonical_game(home_score=0, away_score=0)]
        self.synchronizer.sync_week(1)
        self.fetcher.games = [canonical_game(home_score=3, away_score=7, is_final=False)]
        self.synchronizer.sync_week(1)
        self.fetcher.games = [canonical_game(home_score=10, away_score=7, is_final=True)]
        self.synchronizer.sync_week(1)

        self.assertEqual(
            ["field_goal", "touchdown", "touchdown", "game_end", "elimination"],
            received,
        )
        recent = self.hub.recent(limit=2)
        self.assertEqual(["elimination", "game_end"], [record["type"] for record in recent])
        self.assertEqual("DET", recent[0]["team"]["abbreviation"])
        self.assertEqual({"home": 10, "away": 7}, recent[0]["score"])


class SyncGuardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.fetcher = _StubFetcher([canonical_game()])

    def _synchronizer(self, **kwargs) -> GameSynchronizer:
        kwargs.setdefault("settings", make_settings())
        return GameSynchronizer(
            session_factory=self.session_factory,
            rate_limiter=RateLimiter(),
            fetcher=self.fetcher,
            **kwargs,
        )

    def test_second_call_within_window_is_rate_limited(self) -> None:
        synchronizer = self._synchronizer()

        first = synchronizer.sync_current_week(now=IN_WEEK_ONE)
        second = synchronizer.sync_current_week(now=IN_WEEK_ONE)

        self.assertFalse(first.was_skipped)
        self.assertTrue(second.was_skipped)
        self.assertEqual("rate_limited", second.reason)
        self.assertEqual(1, len(self.fetcher.calls))

    def test_off_season_skips_without_fetching(self) -> None:
        synchronizer = self._synchronizer()

        result = synchronizer.sync_current_week(now=datetime(2025, 8, 1, tzinfo=timezone.utc))

        self.assertEqual("off_season", result.reason)
        self.assertEqual([], self.fetcher.calls)

    def test_overlapping_sync_is_skipped(self) -> None:
        inner_results = []

        def reentrant_fetcher(season, season_type, week):
            inner_results.append(synchronizer.sync_current_week(now=IN_WEEK_ONE))
            return []

        synchronizer = GameSynchronizer(
            session_factory=self.session_factory,
            rate_limiter=RateLimiter(),
            fetcher=reentrant_fetcher,
            settings=make_settings(sync_rate_limit_max=100),
        )

        outer = synchronizer.sync_current_week(now=IN_WEEK_ONE)

        self.assertEqual("no_games", outer.reason)
        self.assertEqual("already_running", inner_results[0].reason)
        self.assertFalse(synchronizer.is_running)

    def test_fetch_error_propagates_and_releases_guard(self) -> None:
        def failing_fetcher(season, season_type, week):
            raise EspnFetchError("ESPN responded with 503", url="http://espn", status=503)

        synchronizer = GameSynchronizer(
            session_factory=self.session_factory,
            rate_limiter=RateLimiter(),
            fetcher=failing_fetcher,
            settings=make_settings(sync_rate_limit_max=100),
        )

        with self.assertRaises(EspnFetchError):
            synchronizer.sync_current_week(now=IN_WEEK_ONE)
        self.assertFalse(synchronizer.is_running)
        with self.session_factory() as db:
            self.assertEqual(0, db.query(Game).count())


if __name__ == "__main__":
    unittest.main()
