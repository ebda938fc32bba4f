"""
Modules - Scheduling and synchronization core.

    RefreshScheduler - runs a view's refresh tasks on worker threads
    PlaybackSynchronizer - keeps the lyrics window in step with a track
"""

from .base import Module
from .playback import (
    LyricsAdvanced,
    LyricsFinished,
    LyricsWindow,
    PlaybackSynchronizer,
    SyncState,
)
from .scheduler import RefreshScheduler, RefreshTask

__all__ = [
    "Module",
    "LyricsAdvanced",
    "LyricsFinished",
    "LyricsWindow",
    "PlaybackSynchronizer",
    "SyncState",
    "RefreshScheduler",
    "RefreshTask",
]
