#!/usr/bin/env python3
"""
Infrastructure and Cross-Cutting Concerns

Configuration with environment overrides and logging setup. The terminal is
owned by the TUI, so log records go to a file and to an in-memory buffer that
the logs panel displays.
"""

import os
import logging
from collections import deque
from pathlib import Path
from threading import Lock
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# =============================================================================
# CONFIGURATION - Defaults with LIVEDASH_* environment overrides
# =============================================================================

class Config:
    """
    Configuration with defaults that can be overridden from the environment.

    Every key in DEFAULTS is read from `LIVEDASH_<KEY>` at call time, so a
    `.env` file loaded before startup (or monkeypatched env in tests) wins
    over the defaults.
    """

    ENV_PREFIX = "LIVEDASH_"

    APP_DATA_DIR = Path.home() / ".cache" / "livedash"

    DEFAULTS: Dict[str, Any] = {
        "DB_PATH": str(APP_DATA_DIR / "livedash.sqlite3"),
        "LOG_FILE": str(APP_DATA_DIR / "livedash.log"),
        "TAP_URL": "https://tap.zeus.gent/recent",
        "TAP_TIMEOUT_S": 5.0,
        # Poll intervals (seconds)
        "SONG_INTERVAL_CURRENT_S": 5,
        "SONG_INTERVAL_TOP_S": 3600,
        "ZESS_INTERVAL_S": 1,
        "TAP_INTERVAL_S": 60,
        # Lyrics window
        "PREVIOUS_AMOUNT": 5,
        "UPCOMING_AMOUNT": 10,
        "PLAIN_LINE_SECONDS": 4.0,
        # Scan chart
        "ZESS_DAYS": 40,
    }

    @classmethod
    def _raw(cls, key: str) -> Optional[str]:
        value = os.environ.get(f"{cls.ENV_PREFIX}{key}", "").strip()
        return value or None

    @classmethod
    def _default(cls, key: str, default: Any) -> Any:
        if default is not None:
            return default
        if key not in cls.DEFAULTS:
            raise KeyError(f"Unknown config key: {key}")
        return cls.DEFAULTS[key]

    @classmethod
    def get_str(cls, key: str, default: Optional[str] = None) -> str:
        raw = cls._raw(key)
        return raw if raw is not None else str(cls._default(key, default))

    @classmethod
    def get_int(cls, key: str, default: Optional[int] = None, minimum: Optional[int] = None) -> int:
        fallback = int(cls._default(key, default))
        raw = cls._raw(key)
        if raw is None:
            return fallback
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid integer for {cls.ENV_PREFIX}{key}: {raw!r}, using {fallback}")
            return fallback
        return cls._at_least(key, value, minimum, fallback)

    @classmethod
    def get_float(cls, key: str, default: Optional[float] = None, minimum: Optional[float] = None) -> float:
        fallback = float(cls._default(key, default))
        raw = cls._raw(key)
        if raw is None:
            return fallback
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Invalid number for {cls.ENV_PREFIX}{key}: {raw!r}, using {fallback}")
            return fallback
        return cls._at_least(key, value, minimum, fallback)

    @classmethod
    def _at_least(cls, key: str, value: Any, minimum: Any, fallback: Any) -> Any:
        if minimum is not None and value < minimum:
            logger.warning(f"{cls.ENV_PREFIX}{key}={value} is below {minimum}, using {fallback}")
            return fallback
        return value

    @classmethod
    def all_settings(cls) -> Dict[str, str]:
        """Effective settings as strings, for the status display."""
        return {key: cls.get_str(key) for key in cls.DEFAULTS}


# =============================================================================
# LOGGING
# =============================================================================

class LogBuffer(logging.Handler):
    """Logging handler keeping the last `capacity` formatted records."""

    def __init__(self, capacity: int = 500):
        super().__init__()
        self._lines: Deque[str] = deque(maxlen=capacity)
        self._lines_lock = Lock()
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._lines_lock:
            self._lines.append(msg)

    @property
    def lines(self) -> List[str]:
        with self._lines_lock:
            return list(self._lines)


def configure_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    """
    Send log records to `log_file` (or stderr when None).

    Noisy HTTP library logs are limited to warnings.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3.connectionpool').setLevel(logging.WARNING)
