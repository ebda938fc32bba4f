#!/usr/bin/env python3
"""
Lyrics - Cursor navigation over synced and plain lyric lines.

Two variants share one interface:
    SyncedLyrics - LRC text, each line lasts until the next timestamp
    PlainLyrics  - untimed text, every line lasts a fixed nominal duration

The cursor starts before the first line. `next()` moves it forward and
returns the new current line; once it runs past the last line the source is
exhausted and stays that way.

Usage:
    lyrics = new_lyrics(track)
    line = lyrics.next()
    while line is not None:
        print(line.text, lyrics.upcoming(3))
        line = lyrics.next()
"""

import re
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Tuple

from livedash.domain import Lyric, Track
from livedash.infra import Config

logger = logging.getLogger(__name__)

SYNCED = "synced"

# [mm:ss], [mm:ss.xx], [mm:ss.xxx]
TIMESTAMP_TAG = re.compile(r'\[(\d{1,3}):(\d{2})(?:[.:](\d{1,3}))?\]')


# =============================================================================
# PARSING - Pure functions
# =============================================================================

def _tag_seconds(match: 're.Match') -> Optional[float]:
    minutes, seconds, fraction = match.groups()
    if int(seconds) >= 60:
        return None
    value = int(minutes) * 60 + int(seconds)
    if fraction:
        value += int(fraction) / (10 ** len(fraction))
    return float(value)


def parse_lrc(lrc_text: str) -> List[Tuple[float, str]]:
    """
    Parse LRC text into (timestamp, text) entries ordered by timestamp.

    A line may carry several timestamp tags; each one yields an entry.
    Lines without a valid timestamp (metadata tags, garbage) are skipped.
    """
    entries: List[Tuple[float, str]] = []

    for raw in lrc_text.splitlines():
        line = raw.strip()
        if not line:
            continue

        times: List[float] = []
        pos = 0
        valid = True
        while True:
            match = TIMESTAMP_TAG.match(line, pos)
            if not match:
                break
            seconds = _tag_seconds(match)
            if seconds is None:
                valid = False
                break
            times.append(seconds)
            pos = match.end()

        if not times or not valid:
            logger.debug(f"Skipping LRC entry without valid timestamp: {line!r}")
            continue

        text = line[pos:].strip()
        entries.extend((t, text) for t in times)

    # sort is stable, so lines sharing a timestamp keep file order
    entries.sort(key=lambda entry: entry[0])
    return entries


def synced_lines(entries: Sequence[Tuple[float, str]], total_duration: float) -> List[Lyric]:
    """
    Turn timestamped entries into lines with durations.

    A blank lead-in line covers the time before the first timestamp. The last
    line runs until `total_duration`.
    """
    if not entries:
        return []

    lines: List[Lyric] = []
    first_time = entries[0][0]
    if first_time > 0:
        lines.append(Lyric(text="", duration=first_time))

    for i, (time_sec, text) in enumerate(entries):
        end = entries[i + 1][0] if i + 1 < len(entries) else total_duration
        lines.append(Lyric(text=text, duration=max(0.0, end - time_sec)))

    return lines


def lyrics_to_text(lines: Iterable[Lyric]) -> List[str]:
    return [line.text for line in lines]


# =============================================================================
# LYRIC SOURCES
# =============================================================================

class Lyrics(ABC):
    """Ordered, cursor-navigable lyric lines for one track."""

    def __init__(self, track: Track, lines: Optional[Iterable[Lyric]] = None):
        self._track = track
        self._lines: Tuple[Lyric, ...] = tuple(self.parse(track) if lines is None else lines)
        self._index = -1

    @staticmethod
    @abstractmethod
    def parse(track: Track) -> List[Lyric]:
        """Build the line sequence from the track's raw lyrics."""

    @property
    def track(self) -> Track:
        return self._track

    @property
    def lines(self) -> Tuple[Lyric, ...]:
        return self._lines

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def current(self) -> Optional[Lyric]:
        """Line at the cursor, None before the first `next()` or once exhausted."""
        if 0 <= self._index < len(self._lines):
            return self._lines[self._index]
        return None

    def next(self) -> Optional[Lyric]:
        """Advance the cursor and return the new current line."""
        if self._index < len(self._lines):
            self._index += 1
        return self.current()

    def previous(self, amount: int) -> List[Lyric]:
        """Up to `amount` lines already passed, most recent last."""
        if amount <= 0:
            return []
        end = min(max(self._index, 0), len(self._lines))
        return list(self._lines[max(0, end - amount):end])

    def upcoming(self, amount: int) -> List[Lyric]:
        """Up to `amount` lines not reached yet, in order."""
        if amount <= 0:
            return []
        start = min(self._index + 1, len(self._lines))
        return list(self._lines[start:start + amount])


class SyncedLyrics(Lyrics):
    """Lyrics whose line durations come from LRC timestamps."""

    @staticmethod
    def parse(track: Track) -> List[Lyric]:
        return synced_lines(parse_lrc(track.lyrics), track.duration_sec)


class PlainLyrics(Lyrics):
    """
    Untimed lyrics scrolled at a fixed pace.

    There is no real synchronization for this variant, every line simply
    stays `PLAIN_LINE_SECONDS` on screen.
    """

    @staticmethod
    def parse(track: Track) -> List[Lyric]:
        duration = Config.get_float("PLAIN_LINE_SECONDS")
        return [
            Lyric(text=line.strip(), duration=duration)
            for line in track.lyrics.splitlines()
            if line.strip()
        ]


def new_lyrics(track: Track) -> Lyrics:
    """Pick the lyrics variant from the track's lyrics type."""
    if track.lyrics_type == SYNCED:
        return SyncedLyrics(track)
    return PlainLyrics(track)
