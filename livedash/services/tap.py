"""
Tap - Client for the drink tap's recent orders feed.

Simple interface:
    client.get_orders() -> List[TapOrder]   # raises TapError on failure
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from livedash.domain import TapOrder
from livedash.infra import Config

logger = logging.getLogger(__name__)


class TapError(Exception):
    """The tap feed could not be fetched or understood."""


# fromisoformat before 3.11 only takes 3 or 6 fraction digits
ISO_FRACTION = re.compile(r'\.(\d+)')


def _parse_time(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    # "2024-05-01T20:15:00Z" and friends, naive times are UTC
    text = str(value).strip().replace("Z", "+00:00")
    text = ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def parse_order(item: Dict[str, Any]) -> TapOrder:
    return TapOrder(
        order_id=int(item["order_id"]),
        created_at=_parse_time(item["order_created_at"]),
        product_name=str(item.get("product_name", "")),
        product_category=str(item.get("product_category", "")),
    )


class TapClient:
    """Fetches recent orders from the tap API."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self._url = url or Config.get_str("TAP_URL")
        self._timeout = timeout if timeout is not None else Config.get_float("TAP_TIMEOUT_S")
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = "livedash/1.0"

    @property
    def url(self) -> str:
        return self._url

    def get_orders(self) -> List[TapOrder]:
        logger.debug(f"Tap: getting orders from {self._url}")
        try:
            resp = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as e:
            raise TapError(f"Tap request failed: {e}") from e

        if resp.status_code != 200:
            raise TapError(f"Tap returned HTTP {resp.status_code}")

        try:
            data = resp.json()
            return [parse_order(item) for item in data.get("orders", [])]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TapError(f"Malformed tap response: {e}") from e
