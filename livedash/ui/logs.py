"""Status and log panels for the dashboard."""

from typing import Any, Callable, Dict, List

from rich.markup import escape
from textual.widgets import Static

from livedash.infra import LogBuffer
from livedash.utils import truncate


class SchedulerStatusPanel(Static):
    """Per-task counters of every refresh scheduler."""

    def __init__(self, status_source: Callable[[], List[Dict[str, Any]]], **kwargs):
        super().__init__(**kwargs)
        self._status_source = status_source

    def on_mount(self) -> None:
        self._safe_render()
        self.set_interval(1.0, self._safe_render)

    def _safe_render(self) -> None:
        if not self.is_mounted:
            return
        text = "[bold]═══ Refresh Tasks ═══[/]\n"
        statuses = self._status_source()
        if not statuses:
            self.update(text + "[dim]No schedulers running[/]")
            return
        for status in statuses:
            state = "[green]● running[/]" if status.get("started") else "[dim]○ stopped[/]"
            text += f"[bold]{escape(status.get('name', '?'))}[/] {state}\n"
            for name, task in status.get("tasks", {}).items():
                line = (
                    f"  {escape(name):<22} every {task['interval']}s  "
                    f"runs {task['runs']}  sent {task['delivered']}  errors {task['errors']}"
                )
                if task.get("last_error"):
                    line += f"  [red]{escape(truncate(task['last_error'], 80))}[/]"
                text += line + "\n"
        self.update(text)


class LogsPanel(Static):
    """Last captured log records, newest at the bottom."""

    MAX_LINES = 500

    def __init__(self, buffer: LogBuffer, **kwargs):
        super().__init__(**kwargs)
        self._buffer = buffer

    def on_mount(self) -> None:
        self._safe_render()
        self.set_interval(1.0, self._safe_render)

    def _safe_render(self) -> None:
        if not self.is_mounted:
            return
        lines = self._buffer.lines[-self.MAX_LINES:]
        if not lines:
            self.update("[dim]No log records yet[/]")
            return
        colored = []
        for line in lines:
            safe = escape(line)
            if " - ERROR - " in line or " - CRITICAL - " in line:
                colored.append(f"[red]{safe}[/]")
            elif " - WARNING - " in line:
                colored.append(f"[yellow]{safe}[/]")
            else:
                colored.append(safe)
        self.update("\n".join(colored))
