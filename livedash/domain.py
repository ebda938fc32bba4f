#!/usr/bin/env python3
"""
Domain Models

Immutable data structures shared by the storage layer, the feed clients,
the pollers and the views. Timestamps are POSIX seconds, durations are seconds.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Tuple


# =============================================================================
# SONGS AND LYRICS
# =============================================================================

@dataclass(frozen=True)
class Lyric:
    """A single lyric line and how long it stays current."""
    text: str
    duration: float = 0.0


@dataclass(frozen=True)
class Track:
    """
    One playback of a song. Immutable.

    A new instance is created whenever the song history reports a new ID,
    so `id` identifies the playback, not the song.
    """
    id: int
    title: str
    artists: Tuple[str, ...] = ()
    spotify_id: str = ""
    duration_sec: float = 0.0
    started_at: float = 0.0
    lyrics_type: str = ""
    lyrics: str = ""

    @property
    def ended_at(self) -> float:
        return self.started_at + self.duration_sec

    @property
    def artist_line(self) -> str:
        return ", ".join(self.artists)

    def is_playing(self, now: float) -> bool:
        """True while `now` falls before the end of the track."""
        return now < self.ended_at

    def __str__(self) -> str:
        if self.artists:
            return f"{self.artist_line} - {self.title}"
        return self.title


@dataclass(frozen=True)
class TopStat:
    """Play count aggregate for a song, genre or artist."""
    name: str
    amount: int


# =============================================================================
# DOOR SCANS
# =============================================================================

@dataclass(frozen=True)
class Scan:
    id: int
    scan_time: float

    @property
    def day(self) -> date:
        return day_of(self.scan_time)


@dataclass(frozen=True)
class DayScan:
    """Number of scans on one calendar day."""
    date: date
    amount: int


# =============================================================================
# TAP ORDERS
# =============================================================================

@dataclass(frozen=True)
class TapOrder:
    order_id: int
    created_at: float
    product_name: str
    product_category: str


def day_of(timestamp: float) -> date:
    """UTC calendar day of a POSIX timestamp."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
