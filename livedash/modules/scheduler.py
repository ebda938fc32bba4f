"""
Scheduler Module - Periodic refresh tasks for one view.

Every task gets its own worker thread. A task runs its update function once
right away, then on a fixed-rate ticker. Whatever the update returns (other
than None) is handed to `deliver`, which must be safe to call from any thread
(the view's `post_message` in the app).

Usage:
    scheduler = RefreshScheduler(deliver=view.post_message, name="Songs")
    scheduler.start(view.get_update_datas())
    ...
    scheduler.stop()  # returns once every worker thread has exited
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from livedash.modules.base import Module

logger = logging.getLogger(__name__)

UpdateFunc = Callable[[Any], Optional[Any]]
Deliver = Callable[[Any], Any]


@dataclass(frozen=True)
class RefreshTask:
    """
    One named poll-and-deliver unit of a view.

    `update(view)` returns a message, or None when nothing changed. It raises
    on failure; the scheduler logs the error and keeps the schedule.
    """
    name: str
    interval: float
    update: UpdateFunc
    view: Any = None


@dataclass
class _TaskStats:
    runs: int = 0
    errors: int = 0
    delivered: int = 0
    last_error: str = ""
    last_run: float = 0.0


@dataclass
class _Registration:
    task: RefreshTask
    thread: threading.Thread
    stats: _TaskStats = field(default_factory=_TaskStats)


class RefreshScheduler(Module):
    """
    Runs a fixed set of refresh tasks off the render thread.

    The task set is fixed by `start()`. One stop event is shared by all
    workers; `stop()` sets it and joins every thread.
    """

    def __init__(
        self,
        deliver: Deliver,
        tasks: Optional[Sequence[RefreshTask]] = None,
        name: str = "view",
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(name)
        self._deliver = deliver
        self._tasks: List[RefreshTask] = list(tasks or [])
        self._clock = clock
        self._stop_event = threading.Event()
        self._registrations: List[_Registration] = []

    @property
    def tasks(self) -> List[RefreshTask]:
        return list(self._tasks)

    def start(self, tasks: Optional[Sequence[RefreshTask]] = None) -> bool:
        """
        Start one worker per task. Calling it again is a no-op.

        Raises ValueError for a task without a positive interval; nothing is
        started and the previous task set is kept.
        """
        return super().start(tasks)

    def _start(self, tasks: Optional[Sequence[RefreshTask]] = None) -> None:
        task_list = self._tasks if tasks is None else list(tasks)
        for task in task_list:
            if task.interval <= 0:
                raise ValueError(f"{self._name}: task '{task.name}' needs a positive interval")
        self._tasks = task_list

        for task in self._tasks:
            stats = _TaskStats()
            thread = threading.Thread(
                target=self._run_task,
                args=(task, stats),
                name=f"Refresh-{self._name}-{task.name}",
                daemon=True,
            )
            self._registrations.append(_Registration(task=task, thread=thread, stats=stats))

        for registration in self._registrations:
            logger.info(
                f"{self._name}: starting '{registration.task.name}' "
                f"every {registration.task.interval}s"
            )
            registration.thread.start()

    def _stop(self) -> None:
        self._stop_event.set()
        self._join_workers()
        logger.info(f"{self._name}: stopped {len(self._registrations)} refresh tasks")

    def _await_stop(self) -> None:
        # A worker stopping its own scheduler must not wait for itself
        if self._is_worker(threading.current_thread()):
            return
        self._join_workers()

    def _join_workers(self) -> None:
        current = threading.current_thread()
        for registration in list(self._registrations):
            thread = registration.thread
            if thread is current or thread.ident is None:
                continue
            thread.join()

    def _is_worker(self, thread: threading.Thread) -> bool:
        return any(r.thread is thread for r in self._registrations)

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status["tasks"] = {
            r.task.name: {
                "interval": r.task.interval,
                "alive": r.thread.is_alive(),
                "runs": r.stats.runs,
                "errors": r.stats.errors,
                "delivered": r.stats.delivered,
                "last_error": r.stats.last_error,
            }
            for r in self._registrations
        }
        return status

    # =========================================================================
    # WORKER
    # =========================================================================

    def _run_task(self, task: RefreshTask, stats: _TaskStats) -> None:
        # Cold start: refresh right away
        self._tick(task, stats)

        next_due = self._clock() + task.interval
        while True:
            timeout = max(0.0, next_due - self._clock())
            if self._stop_event.wait(timeout):
                break

            self._tick(task, stats)

            # Ticks that passed while the update was running are dropped
            now = self._clock()
            next_due += task.interval
            if next_due <= now:
                missed = int((now - next_due) // task.interval) + 1
                next_due += missed * task.interval

        logger.debug(f"{self._name}: '{task.name}' exited")

    def _tick(self, task: RefreshTask, stats: _TaskStats) -> None:
        stats.runs += 1
        stats.last_run = time.time()
        try:
            message = task.update(task.view)
        except Exception as e:
            stats.errors += 1
            stats.last_error = str(e)
            logger.exception(f"{self._name}: '{task.name}' update failed: {e}")
            return

        if message is None:
            return

        try:
            self._deliver(message)
            stats.delivered += 1
        except Exception as e:
            stats.errors += 1
            stats.last_error = str(e)
            logger.exception(f"{self._name}: '{task.name}' delivery failed: {e}")
