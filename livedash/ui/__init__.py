"""UI components for the dashboard."""

from .messages import (
    LyricsUpdate,
    SongPlaying,
    TapOrdersUpdated,
    TopStatsUpdated,
    ZessScansUpdated,
    ZessSeasonUpdated,
)
from .logs import LogsPanel, SchedulerStatusPanel
from .views import DashboardView, SongView, TapView, ZessView

__all__ = [
    # Messages
    "LyricsUpdate",
    "SongPlaying",
    "TapOrdersUpdated",
    "TopStatsUpdated",
    "ZessScansUpdated",
    "ZessSeasonUpdated",
    # Panels
    "LogsPanel",
    "SchedulerStatusPanel",
    # Views
    "DashboardView",
    "SongView",
    "TapView",
    "ZessView",
]
