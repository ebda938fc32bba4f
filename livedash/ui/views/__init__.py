"""Dashboard views."""

from .base import DashboardView
from .song import SongView, update_current_song, update_top_stats
from .tap import TapView, update_orders
from .zess import ZessView, aggregate_by_day, merge_day_scans, update_scans, update_season

__all__ = [
    "DashboardView",
    "SongView",
    "TapView",
    "ZessView",
    "aggregate_by_day",
    "merge_day_scans",
    "update_current_song",
    "update_orders",
    "update_scans",
    "update_season",
    "update_top_stats",
]
