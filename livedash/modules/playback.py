"""
Playback Module - Keeps a lyrics window in step with a playing track.

The synchronizer is a small state machine per track:

    CATCHING_UP --start()--> LIVE --advance()--> LIVE ... --> FINISHED

`start()` fast-forwards through lines that already passed when the track
started before we saw it. Each `advance()` moves to the next line once
`window.next_due` is reached. Every returned event carries the track ID so
the consumer can drop events from a synchronizer that has been superseded.

Usage:
    sync = PlaybackSynchronizer(new_lyrics(track))
    event = sync.start()
    while isinstance(event, LyricsAdvanced):
        time.sleep(sync.delay())
        event = sync.advance()
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

from livedash.domain import Lyric, Track
from livedash.infra import Config
from livedash.lyrics import Lyrics, lyrics_to_text

logger = logging.getLogger(__name__)


class SyncState(Enum):
    CATCHING_UP = "catching_up"
    LIVE = "live"
    FINISHED = "finished"


@dataclass(frozen=True)
class LyricsWindow:
    """What the lyrics display shows between two transitions."""
    previous: Tuple[str, ...]
    current: str
    upcoming: Tuple[str, ...]
    next_due: float


@dataclass(frozen=True)
class LyricsAdvanced:
    """A new line became current."""
    track_id: int
    window: LyricsWindow


@dataclass(frozen=True)
class LyricsFinished:
    """No lines left for the track."""
    track_id: int


LyricsEvent = Union[LyricsAdvanced, LyricsFinished]


class PlaybackSynchronizer:
    """
    Lyric timing for one track.

    Owns the cursor of its Lyrics source. Not thread-safe: it is driven from
    the render loop only.
    """

    def __init__(
        self,
        lyrics: Lyrics,
        previous_amount: Optional[int] = None,
        upcoming_amount: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._lyrics = lyrics
        self._previous_amount = previous_amount if previous_amount is not None else Config.get_int("PREVIOUS_AMOUNT")
        self._upcoming_amount = upcoming_amount if upcoming_amount is not None else Config.get_int("UPCOMING_AMOUNT")
        self._clock = clock
        self._state = SyncState.CATCHING_UP
        self._window: Optional[LyricsWindow] = None
        self._next_due = 0.0

    @property
    def track(self) -> Track:
        return self._lyrics.track

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def window(self) -> Optional[LyricsWindow]:
        """Current window while LIVE, None otherwise."""
        return self._window

    def start(self) -> LyricsEvent:
        """
        Catch up with wall-clock time and return the first event.

        Lines are consumed while their end lies in the past. If the lines run
        out first, the track is over as far as lyrics go.
        """
        if self._state is not SyncState.CATCHING_UP:
            raise RuntimeError(f"Synchronizer for track {self.track.id} already started")

        now = self._clock()
        line = self._lyrics.next()
        due = self.track.started_at + (line.duration if line else 0.0)

        # zero-length lines still consume one step each, so this always ends
        for _ in range(len(self._lyrics)):
            if line is None or due >= now:
                break
            line = self._lyrics.next()
            if line is not None:
                due += line.duration

        if line is None:
            logger.debug(f"Track {self.track.id} lyrics already over on start")
            return self._finish()

        skipped = len(self._lyrics.previous(len(self._lyrics)))
        if skipped:
            logger.debug(f"Track {self.track.id}: caught up {skipped} lines")

        self._state = SyncState.LIVE
        return self._advanced(line, due)

    def advance(self) -> LyricsEvent:
        """Move to the next line. Call once `window.next_due` has passed."""
        if self._state is SyncState.FINISHED:
            return LyricsFinished(track_id=self.track.id)
        if self._state is SyncState.CATCHING_UP:
            raise RuntimeError(f"Synchronizer for track {self.track.id} not started")

        line = self._lyrics.next()
        if line is None:
            return self._finish()

        return self._advanced(line, self._next_due + line.duration)

    def delay(self, now: Optional[float] = None) -> float:
        """Seconds until the next transition is due, never negative."""
        if self._state is not SyncState.LIVE:
            return 0.0
        now = self._clock() if now is None else now
        return max(0.0, self._next_due - now)

    def _advanced(self, line: Lyric, next_due: float) -> LyricsAdvanced:
        self._next_due = next_due
        self._window = LyricsWindow(
            previous=tuple(lyrics_to_text(self._lyrics.previous(self._previous_amount))),
            current=line.text,
            upcoming=tuple(lyrics_to_text(self._lyrics.upcoming(self._upcoming_amount))),
            next_due=next_due,
        )
        return LyricsAdvanced(track_id=self.track.id, window=self._window)

    def _finish(self) -> LyricsFinished:
        self._state = SyncState.FINISHED
        self._window = None
        return LyricsFinished(track_id=self.track.id)
