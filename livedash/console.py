#!/usr/bin/env python3
"""
Dashboard Console - Textual app with one tab per view

Screens (press 1-4 to switch):
1. Songs - Now playing with synced lyrics, history and top stats
2. Zess - Door scans per day and the season total
3. Tap - Drink orders per category
4. Status - Refresh task counters and captured logs

Every view gets its own RefreshScheduler. Workers post messages to the
view; the app's event loop is the only place view state changes.
"""

import argparse
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, TabbedContent, TabPane

from livedash.infra import Config, LogBuffer, configure_logging
from livedash.modules.scheduler import RefreshScheduler
from livedash.services.storage import Database
from livedash.services.tap import TapClient
from livedash.ui import LogsPanel, SchedulerStatusPanel, SongView, TapView, ZessView
from livedash.ui.views.base import DashboardView

logger = logging.getLogger(__name__)


class DashboardApp(App):
    """Live dashboard application."""

    CSS = """
    Screen { background: $surface; }
    TabbedContent { height: 1fr; }
    TabPane { padding: 1; }
    .panel { padding: 1; border: solid $primary; height: auto; }
    .full-height { height: 1fr; overflow-y: auto; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("1", "show_tab('songs')", "Songs"),
        Binding("2", "show_tab('zess')", "Zess"),
        Binding("3", "show_tab('tap')", "Tap"),
        Binding("4", "show_tab('status')", "Status"),
    ]

    def __init__(
        self,
        db: Database,
        tap_client: Optional[TapClient] = None,
        log_buffer: Optional[LogBuffer] = None,
        clock: Callable[[], float] = time.time,
        start_refresh: bool = True,
    ):
        super().__init__()
        self.db = db
        self.tap_client = tap_client or TapClient()
        self.time_source = clock
        self.start_refresh = start_refresh
        self.schedulers: List[RefreshScheduler] = []

        self.log_buffer = log_buffer or LogBuffer()
        self._setup_log_capture()

        # Loaded once here, later kept up to date by the song view itself
        self._history = db.get_song_history()

    def _setup_log_capture(self) -> None:
        """Feed records from the root logger into the logs panel."""
        root_logger = logging.getLogger()
        if self.log_buffer not in root_logger.handlers:
            root_logger.addHandler(self.log_buffer)

    @property
    def dashboard_views(self) -> List[DashboardView]:
        return list(self.query(DashboardView))

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with TabbedContent(id="screens"):
            with TabPane("1 Songs", id="songs"):
                with VerticalScroll():
                    yield SongView(self.db, history=self._history, clock=self.time_source, id="song-view", classes="panel")

            with TabPane("2 Zess", id="zess"):
                with VerticalScroll():
                    yield ZessView(self.db, clock=self.time_source, id="zess-view", classes="panel")

            with TabPane("3 Tap", id="tap"):
                with VerticalScroll():
                    yield TapView(self.tap_client, id="tap-view", classes="panel")

            with TabPane("4 Status", id="status"):
                yield SchedulerStatusPanel(self.scheduler_status, id="scheduler-status", classes="panel")
                with VerticalScroll(classes="panel full-height"):
                    yield LogsPanel(self.log_buffer, id="logs-panel")

        yield Footer()

    def on_mount(self) -> None:
        self.title = "livedash"
        self.sub_title = "Press 1-4 to switch screens"

        if self.start_refresh:
            self.start_schedulers()

        logger.info("Dashboard mounted and ready")

    def start_schedulers(self) -> None:
        """Start one refresh scheduler per view."""
        for view in self.dashboard_views:
            tasks = view.get_update_datas()
            if not tasks:
                continue
            scheduler = RefreshScheduler(deliver=view.post_message, name=view.view_name)
            scheduler.start(tasks)
            self.schedulers.append(scheduler)

    def stop_schedulers(self) -> None:
        for scheduler in self.schedulers:
            logger.info(f"Shutdown: stopping {scheduler.name} refresh tasks")
            scheduler.stop()

    def scheduler_status(self) -> List[Dict[str, Any]]:
        return [scheduler.get_status() for scheduler in self.schedulers]

    def action_show_tab(self, tab_id: str) -> None:
        self.query_one("#screens", TabbedContent).active = tab_id

    def on_unmount(self) -> None:
        logger.info("Shutdown: begin")
        self.stop_schedulers()
        logging.getLogger().removeHandler(self.log_buffer)
        logger.info("Shutdown: complete")


def main():
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Live dashboard for songs, lyrics, scans and tap orders")
    parser.add_argument("--db", default=None, help="SQLite database path (default: LIVEDASH_DB_PATH)")
    parser.add_argument("--tap-url", default=None, help="Tap recent orders URL (default: LIVEDASH_TAP_URL)")
    parser.add_argument("--log-file", default=None, help="Log file (default: LIVEDASH_LOG_FILE)")
    parser.add_argument("--debug", action="store_true", help="Log debug messages")
    args = parser.parse_args()

    configure_logging(
        args.log_file or Config.get_str("LOG_FILE"),
        level=logging.DEBUG if args.debug else logging.INFO,
    )

    db = Database(args.db or Config.get_str("DB_PATH"))
    try:
        DashboardApp(db, tap_client=TapClient(url=args.tap_url)).run()
    finally:
        db.close()


if __name__ == '__main__':
    main()
