"""Base view class for the dashboard."""

from typing import List

from textual.widgets import Static

from livedash.modules.scheduler import RefreshTask


class DashboardView(Static):
    """
    A panel that owns its state and refreshes it from background tasks.

    Subclasses list their refresh tasks in `get_update_datas()`; the app runs
    them in a RefreshScheduler that posts results back to the view.
    """

    VIEW_NAME = "View"

    @property
    def view_name(self) -> str:
        return self.VIEW_NAME

    def get_update_datas(self) -> List[RefreshTask]:
        return []

    def render_section(self, title: str, emoji: str = "═") -> str:
        return f"[bold]{emoji * 3} {title} {emoji * 3}[/]\n"

    def on_mount(self) -> None:
        self._safe_render()

    def _safe_render(self) -> None:
        """Render only if mounted."""
        if not self.is_mounted:
            return
        self.update(self.build_content())

    def build_content(self) -> str:
        return ""
