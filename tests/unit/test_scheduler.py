"""
Unit tests for the refresh scheduler.

These use real threads with short intervals; every wait has a generous
timeout so slow machines only make the tests slower, not flaky.
"""

import threading
import time

import pytest

from livedash.modules.scheduler import RefreshScheduler, RefreshTask


class Collector:
    """Thread-safe deliver target."""

    def __init__(self):
        self.messages = []
        self._lock = threading.Lock()
        self._event = threading.Event()

    def __call__(self, message):
        with self._lock:
            self.messages.append(message)
        self._event.set()

    def wait_for(self, count, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.messages) >= count:
                    return True
            self._event.wait(0.01)
            self._event.clear()
        return False


@pytest.fixture
def collector():
    return Collector()


class TestStart:
    """Test cold start and periodic delivery."""

    def test_runs_immediately_on_start(self, collector):
        task = RefreshTask(name="cold", interval=3600, update=lambda view: "hello")
        scheduler = RefreshScheduler(collector, name="test")
        try:
            assert scheduler.start([task])
            assert collector.wait_for(1)
            assert collector.messages == ["hello"]
        finally:
            scheduler.stop()

    def test_repeats_on_interval(self, collector):
        counter = iter(range(1000))
        task = RefreshTask(name="tick", interval=0.02, update=lambda view: next(counter))
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        try:
            assert collector.wait_for(5)
        finally:
            scheduler.stop()
        assert collector.messages[:5] == [0, 1, 2, 3, 4]

    def test_none_is_not_delivered(self, collector):
        calls = []

        def update(view):
            calls.append(view)
            return None

        task = RefreshTask(name="quiet", interval=0.01, update=update, view="the view")
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        time.sleep(0.1)
        scheduler.stop()

        assert calls and all(view == "the view" for view in calls)
        assert collector.messages == []

    def test_tasks_run_independently(self, collector):
        slow_started = threading.Event()
        release = threading.Event()

        def slow(view):
            slow_started.set()
            release.wait(5.0)
            return "slow"

        tasks = [
            RefreshTask(name="slow", interval=3600, update=slow),
            RefreshTask(name="fast", interval=3600, update=lambda view: "fast"),
        ]
        scheduler = RefreshScheduler(collector, tasks, name="test")
        scheduler.start()
        try:
            assert slow_started.wait(5.0)
            assert collector.wait_for(1)
            assert collector.messages == ["fast"]
        finally:
            release.set()
            scheduler.stop()

    def test_start_twice_is_noop(self, collector):
        task = RefreshTask(name="once", interval=3600, update=lambda view: "x")
        scheduler = RefreshScheduler(collector, [task], name="test")
        assert scheduler.start()
        assert scheduler.start()
        collector.wait_for(1)
        scheduler.stop()
        assert len(scheduler.get_status()["tasks"]) == 1
        assert collector.messages == ["x"]

    def test_rejects_non_positive_interval(self, collector):
        task = RefreshTask(name="bad", interval=0, update=lambda view: None)
        scheduler = RefreshScheduler(collector, [task], name="test")
        with pytest.raises(ValueError):
            scheduler.start()
        assert not scheduler.is_started

    def test_rejected_tasks_are_not_kept(self, collector):
        good = RefreshTask(name="good", interval=3600, update=lambda view: "ok")
        bad = RefreshTask(name="bad", interval=-1, update=lambda view: None)
        scheduler = RefreshScheduler(collector, [good], name="test")

        with pytest.raises(ValueError):
            scheduler.start([good, bad])
        assert scheduler.tasks == [good]
        assert scheduler.get_status()["tasks"] == {}

        try:
            assert scheduler.start()
            assert collector.wait_for(1)
        finally:
            scheduler.stop()


class TestErrors:
    """Errors are logged and the schedule continues."""

    def test_error_does_not_stop_schedule(self, collector, caplog):
        attempts = []

        def flaky(view):
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("database unreachable")
            return "recovered"

        task = RefreshTask(name="flaky", interval=0.02, update=flaky)
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        try:
            assert collector.wait_for(1)
        finally:
            scheduler.stop()

        assert collector.messages[0] == "recovered"
        assert "database unreachable" in caplog.text
        status = scheduler.get_status()["tasks"]["flaky"]
        assert status["errors"] == 1
        assert status["last_error"] == "database unreachable"

    def test_delivery_error_is_contained(self):
        def broken_deliver(message):
            raise RuntimeError("queue closed")

        calls = []
        task = RefreshTask(name="t", interval=0.01, update=lambda view: calls.append(1) or "m")
        scheduler = RefreshScheduler(broken_deliver, [task], name="test")
        scheduler.start()
        time.sleep(0.1)
        scheduler.stop()

        assert len(calls) > 1
        assert scheduler.get_status()["tasks"]["t"]["errors"] == len(calls)


class TestOrdering:
    """Ticks of one task never overlap."""

    def test_slow_update_does_not_overlap(self, collector):
        lock = threading.Lock()
        state = {"running": 0, "max_running": 0, "runs": 0}

        def slow(view):
            with lock:
                state["running"] += 1
                state["runs"] += 1
                state["max_running"] = max(state["max_running"], state["running"])
            time.sleep(0.1)
            with lock:
                state["running"] -= 1
            return state["runs"]

        task = RefreshTask(name="slow", interval=0.01, update=slow)
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        time.sleep(0.5)
        scheduler.stop()

        assert state["max_running"] == 1
        # Missed ticks are dropped, not queued up
        assert state["runs"] <= 7
        assert collector.messages == sorted(collector.messages)


class TestStop:
    """Test shutdown."""

    def test_stop_waits_for_in_flight_tick(self, collector):
        started = threading.Event()
        finished = threading.Event()

        def slow(view):
            started.set()
            time.sleep(0.2)
            finished.set()
            return "done"

        task = RefreshTask(name="slow", interval=3600, update=slow)
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        assert started.wait(5.0)

        scheduler.stop()

        assert finished.is_set()
        assert collector.messages == ["done"]
        assert not any(t["alive"] for t in scheduler.get_status()["tasks"].values())

    def test_stop_is_idempotent(self, collector):
        tasks = [
            RefreshTask(name=f"t{i}", interval=0.01, update=lambda view: None)
            for i in range(3)
        ]
        scheduler = RefreshScheduler(collector, tasks, name="test")
        scheduler.start()
        scheduler.stop()
        scheduler.stop()

        assert not scheduler.is_started
        assert not any(t["alive"] for t in scheduler.get_status()["tasks"].values())

    def test_no_ticks_after_stop(self, collector):
        calls = []
        task = RefreshTask(name="t", interval=0.01, update=lambda view: calls.append(1))
        scheduler = RefreshScheduler(collector, [task], name="test")
        scheduler.start()
        time.sleep(0.05)
        scheduler.stop()

        count = len(calls)
        time.sleep(0.05)
        assert len(calls) == count

    def test_stop_before_start(self, collector):
        scheduler = RefreshScheduler(collector, name="test")
        scheduler.stop()
        assert not scheduler.start([RefreshTask(name="t", interval=1, update=lambda view: None)])

    def test_concurrent_stop_waits_for_workers(self, collector):
        started = threading.Event()

        def slow(view):
            started.set()
            time.sleep(0.3)
            return None

        scheduler = RefreshScheduler(
            collector, [RefreshTask(name="slow", interval=3600, update=slow)], name="test"
        )
        scheduler.start()
        assert started.wait(5.0)

        workers_alive = []

        def stopper():
            scheduler.stop()
            tasks = scheduler.get_status()["tasks"].values()
            workers_alive.append(any(task["alive"] for task in tasks))

        stoppers = [threading.Thread(target=stopper) for _ in range(4)]
        for thread in stoppers:
            thread.start()
        for thread in stoppers:
            thread.join(5.0)

        assert workers_alive == [False] * 4

    def test_workers_stopping_together_do_not_deadlock(self, collector):
        holder = {}
        both_running = threading.Barrier(2, timeout=5.0)

        def stopper(view):
            both_running.wait()
            holder["scheduler"].stop()
            return None

        tasks = [RefreshTask(name=f"s{i}", interval=3600, update=stopper) for i in range(2)]
        scheduler = RefreshScheduler(collector, tasks, name="test")
        holder["scheduler"] = scheduler
        scheduler.start()

        deadline = time.monotonic() + 5.0
        while not scheduler.is_stopped and time.monotonic() < deadline:
            time.sleep(0.01)
        assert scheduler.is_stopped
        scheduler.stop()
        assert not any(t["alive"] for t in scheduler.get_status()["tasks"].values())

    def test_status_reports_lifecycle(self, collector):
        scheduler = RefreshScheduler(
            collector, [RefreshTask(name="t", interval=3600, update=lambda view: None)], name="Songs"
        )
        assert scheduler.get_status()["name"] == "Songs"
        assert scheduler.get_status()["started"] is False

        scheduler.start()
        assert scheduler.get_status()["started"] is True

        scheduler.stop()
        status = scheduler.get_status()
        assert status["started"] is False
        assert status["stopped"] is True
        assert not scheduler.start()

    def test_stop_from_inside_a_task(self, collector):
        holder = {}
        stopped = threading.Event()

        def stopper(view):
            holder["scheduler"].stop()
            stopped.set()
            return None

        task = RefreshTask(name="stopper", interval=3600, update=stopper)
        scheduler = RefreshScheduler(collector, [task], name="test")
        holder["scheduler"] = scheduler
        scheduler.start()

        assert stopped.wait(5.0)
        scheduler.stop()
        assert not scheduler.is_started
