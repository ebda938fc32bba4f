"""
Song view - Now playing, scrolling lyrics, history and top stats.

Refresh tasks:
    update current song - polls the last song history entry
    top stats           - polls the top songs, genres and artists

Lyrics run on Textual timers. Each timer advances the track's
PlaybackSynchronizer and posts a LyricsUpdate; updates for any track other
than the one currently shown are dropped.
"""

import logging
import time
from functools import partial
from typing import Callable, List, Optional

from rich.markup import escape
from textual.timer import Timer

from livedash.domain import TopStat, Track
from livedash.infra import Config
from livedash.lyrics import new_lyrics
from livedash.modules.playback import (
    LyricsEvent,
    LyricsFinished,
    LyricsWindow,
    PlaybackSynchronizer,
)
from livedash.modules.scheduler import RefreshTask
from livedash.services.storage import Database
from livedash.ui.messages import LyricsUpdate, SongPlaying, TopStatsUpdated
from livedash.utils import format_duration, truncate
from .base import DashboardView

logger = logging.getLogger(__name__)

HISTORY_SIZE = 5
TOP_SIZE = 5


class SongView(DashboardView):
    """Current song with synced lyrics."""

    VIEW_NAME = "Songs"

    def __init__(
        self,
        db: Database,
        history: Optional[List[str]] = None,
        clock: Callable[[], float] = time.time,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.db = db
        self.clock = clock
        self.history: List[str] = list(history or [])[-HISTORY_SIZE:]
        self.top_songs: List[TopStat] = []
        self.top_genres: List[TopStat] = []
        self.top_artists: List[TopStat] = []

        self._track: Optional[Track] = None
        self._last_track_id: Optional[int] = None
        self._sync: Optional[PlaybackSynchronizer] = None
        self._window: Optional[LyricsWindow] = None
        self._lyrics_timer: Optional[Timer] = None

    @property
    def current_track(self) -> Optional[Track]:
        return self._track

    @property
    def current_track_id(self) -> Optional[int]:
        return self._track.id if self._track else None

    @property
    def last_track_id(self) -> Optional[int]:
        """ID of the last track started here, kept after it finishes."""
        return self._last_track_id

    @property
    def window(self) -> Optional[LyricsWindow]:
        return self._window

    def get_update_datas(self) -> List[RefreshTask]:
        return [
            RefreshTask(
                name="update current song",
                interval=Config.get_int("SONG_INTERVAL_CURRENT_S", minimum=1),
                update=update_current_song,
                view=self,
            ),
            RefreshTask(
                name="top stats",
                interval=Config.get_int("SONG_INTERVAL_TOP_S", minimum=1),
                update=update_top_stats,
                view=self,
            ),
        ]

    def on_mount(self) -> None:
        # Keeps the elapsed time ticking between lyric lines
        self.set_interval(1.0, self._safe_render)

    # =========================================================================
    # MESSAGE HANDLERS
    # =========================================================================

    def on_song_playing(self, message: SongPlaying) -> None:
        track = message.track
        if track.id == self._last_track_id:
            return

        logger.info(f"Now playing: {track} (id {track.id})")
        self.history.append(track.title)
        self.history = self.history[-HISTORY_SIZE:]

        self._cancel_lyrics_timer()
        self._track = track
        self._last_track_id = track.id
        self._sync = PlaybackSynchronizer(new_lyrics(track), clock=self.clock)
        self._apply(self._sync.start())

    def on_lyrics_update(self, message: LyricsUpdate) -> None:
        if message.track_id != self.current_track_id:
            logger.debug(f"Dropping lyrics update for track {message.track_id}")
            return
        self._apply(message.event)

    def on_top_stats_updated(self, message: TopStatsUpdated) -> None:
        if message.top_songs is not None:
            self.top_songs = message.top_songs
        if message.top_genres is not None:
            self.top_genres = message.top_genres
        if message.top_artists is not None:
            self.top_artists = message.top_artists
        self._safe_render()

    # =========================================================================
    # LYRICS
    # =========================================================================

    def _apply(self, event: LyricsEvent) -> None:
        if isinstance(event, LyricsFinished):
            logger.info(f"Track {event.track_id} finished")
            self._clear()
            return

        self._window = event.window
        self._schedule_next(self._sync)
        self._safe_render()

    def _schedule_next(self, sync: PlaybackSynchronizer) -> None:
        self._lyrics_timer = self.set_timer(
            sync.delay(),
            partial(self._on_lyrics_due, sync),
            name=f"lyrics-{sync.track.id}",
        )

    def _on_lyrics_due(self, sync: PlaybackSynchronizer) -> None:
        self.post_message(LyricsUpdate(sync.advance()))

    def _cancel_lyrics_timer(self) -> None:
        if self._lyrics_timer is not None:
            self._lyrics_timer.stop()
            self._lyrics_timer = None

    def _clear(self) -> None:
        self._cancel_lyrics_timer()
        self._track = None
        self._sync = None
        self._window = None
        self._safe_render()

    # =========================================================================
    # RENDERING
    # =========================================================================

    def build_content(self) -> str:
        parts = [self._build_playing() if self._track else self._build_not_playing()]
        parts.append(self._build_tops())
        return "\n".join(parts)

    def _build_playing(self) -> str:
        track = self._track
        elapsed = self.clock() - track.started_at
        text = self.render_section("Now Playing", "♪")
        text += f"[bold cyan]{escape(track.title)}[/]\n"
        if track.artists:
            text += f"{escape(track.artist_line)}\n"
        text += f"[dim]{format_duration(elapsed, track.duration_sec)}[/]\n\n"

        window = self._window
        if window:
            for line in window.previous:
                text += f"[dim]{escape(line)}[/]\n"
            text += f"[bold yellow]{escape(window.current)}[/]\n"
            for line in window.upcoming:
                text += f"{escape(line)}\n"
        return text

    def _build_not_playing(self) -> str:
        text = self.render_section("Recently Played", "♪")
        if not self.history:
            return text + "[dim]Nothing played yet[/]\n"
        for title in reversed(self.history):
            text += f"  {escape(truncate(title, 60))}\n"
        return text

    def _build_tops(self) -> str:
        text = ""
        for title, stats in (
            ("Top Songs", self.top_songs),
            ("Top Genres", self.top_genres),
            ("Top Artists", self.top_artists),
        ):
            text += "\n" + self.render_section(title, "─")
            if not stats:
                text += "[dim]No data[/]\n"
            for stat in stats:
                text += f"  {stat.amount:>4}  {escape(stat.name)}\n"
        return text


# =============================================================================
# REFRESH TASKS - run on scheduler threads, read view state, never write it
# =============================================================================

def update_current_song(view: SongView) -> Optional[SongPlaying]:
    track = view.db.get_last_song()
    if track is None:
        return None

    if not track.is_playing(view.clock()):
        return None

    if track.id == view.last_track_id:
        return None

    return SongPlaying(track)


def update_top_stats(view: SongView) -> Optional[TopStatsUpdated]:
    songs = view.db.get_top_songs(TOP_SIZE)
    genres = view.db.get_top_genres(TOP_SIZE)
    artists = view.db.get_top_artists(TOP_SIZE)

    message = TopStatsUpdated(
        top_songs=songs if songs != view.top_songs else None,
        top_genres=genres if genres != view.top_genres else None,
        top_artists=artists if artists != view.top_artists else None,
    )
    if message.top_songs is None and message.top_genres is None and message.top_artists is None:
        return None
    return message
