"""Utility functions for the dashboard."""

from .formatting import format_bar, format_duration, format_time, truncate

__all__ = ["format_bar", "format_duration", "format_time", "truncate"]
