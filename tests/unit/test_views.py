"""
Unit tests for the view refresh functions and scan aggregation.

Refresh functions only read view state, so a namespace with the same
attributes stands in for the widget here. Message handling is covered by
the app tests in tests/test_console.py.
"""

from datetime import date, datetime, timezone
from types import SimpleNamespace

from livedash.domain import DayScan, Scan, TapOrder, TopStat
from livedash.services.tap import TapClient
from livedash.ui.messages import SongPlaying, TapOrdersUpdated, ZessScansUpdated
from livedash.ui.views.song import update_current_song, update_top_stats
from livedash.ui.views.tap import update_orders
from livedash.ui.views.zess import aggregate_by_day, merge_day_scans, update_scans, update_season
from tests.helpers import StubResponse, StubSession


def ts(day, hour=12):
    return datetime(2024, 3, day, hour, tzinfo=timezone.utc).timestamp()


class TestAggregateByDay:
    """Test per-day scan counting."""

    def test_counts_consecutive_days(self):
        scans = [Scan(1, ts(1, 8)), Scan(2, ts(1, 20)), Scan(3, ts(3)), Scan(4, ts(3))]
        assert aggregate_by_day(scans) == [
            DayScan(date(2024, 3, 1), 2),
            DayScan(date(2024, 3, 3), 2),
        ]

    def test_empty(self):
        assert aggregate_by_day([]) == []


class TestMergeDayScans:
    """Test merging new day counts into the chart."""

    def test_sums_overlapping_day(self):
        current = [DayScan(date(2024, 3, 1), 2), DayScan(date(2024, 3, 2), 1)]
        new = [DayScan(date(2024, 3, 2), 4), DayScan(date(2024, 3, 3), 1)]

        assert merge_day_scans(current, new, keep_days=40) == [
            DayScan(date(2024, 3, 1), 2),
            DayScan(date(2024, 3, 2), 5),
            DayScan(date(2024, 3, 3), 1),
        ]

    def test_drops_days_outside_window(self):
        current = [DayScan(date(2024, 3, day), 1) for day in range(1, 6)]
        merged = merge_day_scans(current, [DayScan(date(2024, 3, 10), 1)], keep_days=3)
        assert merged == [DayScan(date(2024, 3, 10), 1)]

        merged = merge_day_scans(current, [], keep_days=2)
        assert [day.date.day for day in merged] == [4, 5]


class TestSongRefresh:
    """Test the song view's refresh functions."""

    def _view(self, db, clock, last_track_id=None):
        return SimpleNamespace(
            db=db,
            clock=clock,
            last_track_id=last_track_id,
            top_songs=[],
            top_genres=[],
            top_artists=[],
        )

    def test_nothing_played(self, db, clock):
        assert update_current_song(self._view(db, clock)) is None

    def test_new_playing_track(self, db, clock):
        song_id = db.add_song("Now", artists=["Band"], duration_sec=180.0)
        history_id = db.add_play(song_id, created_at=clock.now - 10)

        message = update_current_song(self._view(db, clock))

        assert isinstance(message, SongPlaying)
        assert message.track.id == history_id
        assert message.track.title == "Now"

    def test_same_track_is_not_resent(self, db, clock):
        song_id = db.add_song("Now", duration_sec=180.0)
        history_id = db.add_play(song_id, created_at=clock.now - 10)

        assert update_current_song(self._view(db, clock, last_track_id=history_id)) is None

    def test_finished_track_is_ignored(self, db, clock):
        song_id = db.add_song("Old", duration_sec=60.0)
        db.add_play(song_id, created_at=clock.now - 61)

        assert update_current_song(self._view(db, clock)) is None

    def test_top_stats_only_changed_lists(self, db, clock):
        song_id = db.add_song("Hit", artists=["Band"], genres=["rock"])
        db.add_play(song_id, created_at=clock.now)
        view = self._view(db, clock)

        first = update_top_stats(view)
        assert first.top_songs == [TopStat("Hit", 1)]
        assert first.top_genres == [TopStat("rock", 1)]
        assert first.top_artists == [TopStat("Band", 1)]

        view.top_songs = first.top_songs
        view.top_genres = first.top_genres
        view.top_artists = first.top_artists
        assert update_top_stats(view) is None

        db.add_play(db.add_song("Other"), created_at=clock.now)
        second = update_top_stats(view)
        assert second.top_songs == [TopStat("Hit", 1), TopStat("Other", 1)]
        assert second.top_genres is None
        assert second.top_artists is None


class TestZessRefresh:
    """Test the zess view's refresh functions."""

    def _view(self, db, clock, last_scan_id=-1, total_scans=None):
        return SimpleNamespace(db=db, clock=clock, last_scan_id=last_scan_id, total_scans=total_scans)

    def test_no_scans(self, db, clock):
        assert update_scans(self._view(db, clock)) is None

    def test_new_scans(self, db, clock):
        ids = [db.add_scan(ts(day)) for day in (1, 1, 2)]

        message = update_scans(self._view(db, clock))

        assert isinstance(message, ZessScansUpdated)
        assert message.last_scan_id == ids[-1]
        assert [scan.id for scan in message.scans] == ids

    def test_only_scans_after_last_seen(self, db, clock):
        ids = [db.add_scan(ts(day)) for day in (1, 2, 3)]

        message = update_scans(self._view(db, clock, last_scan_id=ids[0]))
        assert [scan.id for scan in message.scans] == ids[1:]

        assert update_scans(self._view(db, clock, last_scan_id=ids[-1])) is None

    def test_season_total(self, db, clock):
        db.add_season("now", clock.now - 100, clock.now + 100)
        db.add_scan(clock.now - 50)

        assert update_season(self._view(db, clock)).amount == 1
        assert update_season(self._view(db, clock, total_scans=1)) is None

    def test_no_season(self, db, clock):
        db.add_scan(clock.now)
        assert update_season(self._view(db, clock)) is None


class TestTapRefresh:
    """Test the tap view's refresh function."""

    PAYLOAD = {
        "orders": [
            {"order_id": 1, "order_created_at": 0, "product_name": "Mate", "product_category": "mate"},
            {"order_id": 2, "order_created_at": 1, "product_name": "Cola", "product_category": "soft"},
            {"order_id": 3, "order_created_at": 2, "product_name": "Mate", "product_category": "mate"},
        ]
    }

    def _view(self, last_order_id=-1):
        client = TapClient(url="https://tap.example", session=StubSession(StubResponse(payload=self.PAYLOAD)))
        return SimpleNamespace(client=client, last_order_id=last_order_id)

    def test_all_orders_are_new(self):
        message = update_orders(self._view())

        assert isinstance(message, TapOrdersUpdated)
        assert message.last_order_id == 3
        assert message.counts() == {"mate": 2, "soft": 1}

    def test_only_newer_orders(self):
        message = update_orders(self._view(last_order_id=2))
        assert message.orders == (TapOrder(3, 2.0, "Mate", "mate"),)

    def test_nothing_new(self):
        assert update_orders(self._view(last_order_id=3)) is None
