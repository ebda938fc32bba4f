"""
Base class for components that run background threads.

Lifecycle is one way: created -> started -> stopped. A stopped module is not
restarted; build a new one instead. Subclasses implement `_start()` and
`_stop()`, the base class handles repeated and concurrent calls.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict

logger = logging.getLogger(__name__)


class Module(ABC):
    """
    Start/stop bookkeeping shared by the background components.

    - start() runs `_start()` once; later calls return True, calls after
      stop() return False.
    - stop() runs `_stop()` once. Every other caller blocks in
      `_await_stop()` until the first one has finished.
    """

    def __init__(self, name: str):
        self._name = name
        self._lifecycle_lock = threading.Lock()
        self._started = False
        self._stopping = False
        self._stopped = threading.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def start(self, *args: Any) -> bool:
        with self._lifecycle_lock:
            if self._stopping:
                logger.warning(f"{self._name}: already stopped, create a new one")
                return False
            if self._started:
                return True
            self._start(*args)
            self._started = True
            return True

    def stop(self) -> None:
        with self._lifecycle_lock:
            first = not self._stopping
            self._stopping = True

        if not first:
            self._await_stop()
            return

        try:
            self._stop()
        finally:
            with self._lifecycle_lock:
                self._started = False
            self._stopped.set()

    @abstractmethod
    def _start(self, *args: Any) -> None:
        """Start background work. Raising leaves the module unstarted."""

    @abstractmethod
    def _stop(self) -> None:
        """Stop background work and wait for it."""

    def _await_stop(self) -> None:
        self._stopped.wait()

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "started": self._started,
            "stopped": self._stopped.is_set(),
        }
