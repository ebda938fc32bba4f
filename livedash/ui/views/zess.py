"""Zess view - door scans per day and the season total."""

import logging
import time
from datetime import timedelta
from typing import Callable, Iterable, List, Optional

from livedash.domain import DayScan, Scan
from livedash.infra import Config
from livedash.modules.scheduler import RefreshTask
from livedash.services.storage import Database
from livedash.ui.messages import ZessScansUpdated, ZessSeasonUpdated
from livedash.utils import format_bar
from .base import DashboardView

logger = logging.getLogger(__name__)


def aggregate_by_day(scans: Iterable[Scan]) -> List[DayScan]:
    """Count scans per day. Input must be ordered by scan time."""
    days: List[DayScan] = []
    for scan in scans:
        if days and days[-1].date == scan.day:
            days[-1] = DayScan(date=scan.day, amount=days[-1].amount + 1)
        else:
            days.append(DayScan(date=scan.day, amount=1))
    return days


def merge_day_scans(current: List[DayScan], new: Iterable[DayScan], keep_days: int) -> List[DayScan]:
    """
    Add `new` day counts into `current` (sorted by date).

    Counts for a day already present are summed. Days older than
    `keep_days` before the newest day are dropped.
    """
    by_date = {day.date: day.amount for day in current}
    for day in new:
        by_date[day.date] = by_date.get(day.date, 0) + day.amount

    merged = [DayScan(date=d, amount=a) for d, a in sorted(by_date.items())]
    if merged and keep_days > 0:
        cutoff = merged[-1].date - timedelta(days=keep_days - 1)
        merged = [day for day in merged if day.date >= cutoff]
    return merged


class ZessView(DashboardView):
    """Scan chart."""

    VIEW_NAME = "Zess"

    def __init__(self, db: Database, clock: Callable[[], float] = time.time, **kwargs):
        super().__init__(**kwargs)
        self.db = db
        self.clock = clock
        self.last_scan_id = -1
        self.scans: List[DayScan] = []
        self.total_scans: Optional[int] = None

    def get_update_datas(self) -> List[RefreshTask]:
        interval = Config.get_int("ZESS_INTERVAL_S", minimum=1)
        return [
            RefreshTask(name="zess scans", interval=interval, update=update_scans, view=self),
            RefreshTask(name="zess season", interval=interval, update=update_season, view=self),
        ]

    def on_zess_scans_updated(self, message: ZessScansUpdated) -> None:
        # A poll may have read last_scan_id before the previous update landed
        fresh = [scan for scan in message.scans if scan.id > self.last_scan_id]
        self.last_scan_id = max(self.last_scan_id, message.last_scan_id)
        if not fresh:
            return

        self.scans = merge_day_scans(self.scans, aggregate_by_day(fresh), Config.get_int("ZESS_DAYS"))
        self._safe_render()

    def on_zess_season_updated(self, message: ZessSeasonUpdated) -> None:
        self.total_scans = message.amount
        self._safe_render()

    def build_content(self) -> str:
        text = self.render_section("Zess Scans", "▤")
        if self.total_scans is not None:
            text += f"Scans this season: [bold green]{self.total_scans}[/]\n\n"

        if not self.scans:
            return text + "[dim]No scans yet[/]\n"

        peak = max(day.amount for day in self.scans)
        for day in self.scans:
            text += f"  {day.date:%m-%d} {format_bar(day.amount / peak, 30)} {day.amount}\n"
        return text


def update_scans(view: ZessView) -> Optional[ZessScansUpdated]:
    last_scan_id = view.last_scan_id

    last = view.db.get_last_scan()
    if last is None or last.id <= last_scan_id:
        return None

    scans = view.db.get_scans_since(last_scan_id)
    if not scans:
        return None

    newest = max(last.id, max(scan.id for scan in scans))
    return ZessScansUpdated(last_scan_id=newest, scans=tuple(scans))


def update_season(view: ZessView) -> Optional[ZessSeasonUpdated]:
    amount = view.db.get_scans_in_current_season(view.clock())
    if amount is None or amount == view.total_scans:
        return None
    return ZessSeasonUpdated(amount=amount)
