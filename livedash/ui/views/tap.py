"""Tap view - drink orders per product category."""

import logging
from typing import Dict, List, Optional

from rich.markup import escape

from livedash.infra import Config
from livedash.modules.scheduler import RefreshTask
from livedash.services.tap import TapClient
from livedash.ui.messages import TapOrdersUpdated
from livedash.utils import format_bar
from .base import DashboardView

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "mate": "Mate",
    "soft": "Soft",
    "beer": "Beer",
    "food": "Food",
}


class TapView(DashboardView):
    """Order counts since startup."""

    VIEW_NAME = "Tap"

    def __init__(self, client: TapClient, **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self.last_order_id = -1
        self.counts: Dict[str, int] = {}

    def get_update_datas(self) -> List[RefreshTask]:
        return [
            RefreshTask(
                name="tap orders",
                interval=Config.get_int("TAP_INTERVAL_S", minimum=1),
                update=update_orders,
                view=self,
            ),
        ]

    def on_tap_orders_updated(self, message: TapOrdersUpdated) -> None:
        fresh = [order for order in message.orders if order.order_id > self.last_order_id]
        if not fresh:
            return

        for order in fresh:
            category = order.product_category.lower() or "other"
            self.counts[category] = self.counts.get(category, 0) + 1
        self.last_order_id = max(order.order_id for order in fresh)
        logger.debug(f"Tap: counted {len(fresh)} orders, last id {self.last_order_id}")
        self._safe_render()

    def build_content(self) -> str:
        text = self.render_section("Tap", "🍺")
        if not self.counts:
            return text + "[dim]No orders yet[/]\n"

        peak = max(self.counts.values())
        for category, amount in sorted(self.counts.items(), key=lambda item: (-item[1], item[0])):
            label = CATEGORY_LABELS.get(category, category.title())
            text += f"  {escape(label):<8} {format_bar(amount / peak, 30)} {amount}\n"
        return text


def update_orders(view: TapView) -> Optional[TapOrdersUpdated]:
    last_order_id = view.last_order_id
    orders = view.client.get_orders()

    fresh = tuple(order for order in orders if order.order_id > last_order_id)
    if not fresh:
        return None
    return TapOrdersUpdated(orders=fresh)
