"""
Message classes delivered to the dashboard views.

Refresh workers post these from their own threads; Textual queues them on
the target view and handles them one at a time on the app's event loop.
None of them bubble: each one belongs to the view that produced it.
"""

from typing import Dict, List, Optional, Tuple

from textual.message import Message

from livedash.domain import Scan, TapOrder, TopStat, Track
from livedash.modules.playback import LyricsEvent


# Song messages
class SongPlaying(Message, bubble=False):
    """A track the view is not showing yet started playing."""
    def __init__(self, track: Track):
        super().__init__()
        self.track = track


class TopStatsUpdated(Message, bubble=False):
    """Top lists that changed. A None list is unchanged."""
    def __init__(
        self,
        top_songs: Optional[List[TopStat]] = None,
        top_genres: Optional[List[TopStat]] = None,
        top_artists: Optional[List[TopStat]] = None,
    ):
        super().__init__()
        self.top_songs = top_songs
        self.top_genres = top_genres
        self.top_artists = top_artists


class LyricsUpdate(Message, bubble=False):
    """A lyrics timer fired for the track in `event.track_id`."""
    def __init__(self, event: LyricsEvent):
        super().__init__()
        self.event = event

    @property
    def track_id(self) -> int:
        return self.event.track_id


# Zess messages
class ZessScansUpdated(Message, bubble=False):
    """New door scans, up to and including `last_scan_id`."""
    def __init__(self, last_scan_id: int, scans: Tuple[Scan, ...]):
        super().__init__()
        self.last_scan_id = last_scan_id
        self.scans = scans


class ZessSeasonUpdated(Message, bubble=False):
    def __init__(self, amount: int):
        super().__init__()
        self.amount = amount


# Tap messages
class TapOrdersUpdated(Message, bubble=False):
    """Orders newer than the last one the view has counted."""
    def __init__(self, orders: Tuple[TapOrder, ...]):
        super().__init__()
        self.orders = orders

    @property
    def last_order_id(self) -> int:
        return max((order.order_id for order in self.orders), default=-1)

    def counts(self) -> Dict[str, int]:
        result: Dict[str, int] = {}
        for order in self.orders:
            result[order.product_category] = result.get(order.product_category, 0) + 1
        return result
