"""Deferred status-change queue."""

from __future__ import annotations

import threading

from services.status_scheduler import StatusScheduler


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRunPending:
    def test_only_due_tasks_run_in_order(self) -> None:
        clock = FakeClock()
        scheduler = StatusScheduler(clock=clock)
        calls = []
        scheduler.schedule(30, calls.append, "approve")
        scheduler.schedule(5, calls.append, "process")

        assert scheduler.run_pending() == 0
        clock.now += 5
        assert scheduler.run_pending() == 1
        assert calls == ["process"]
        clock.now += 25
        assert scheduler.run_pending() == 1
        assert calls == ["process", "approve"]
        assert scheduler.pending_count() == 0

    def test_explicit_now(self) -> None:
        scheduler = StatusScheduler(clock=FakeClock())
        calls = []
        scheduler.schedule(3600, calls.append, 1)
        assert scheduler.run_pending(now=float("inf")) == 1
        assert calls == [1]

    def test_task_scheduled_by_a_task_waits_for_next_call(self) -> None:
        scheduler = StatusScheduler(clock=FakeClock())
        calls = []

        def first() -> None:
            calls.append("first")
            scheduler.schedule(0, calls.append, "second")

        scheduler.schedule(0, first)
        scheduler.run_pending()
        assert calls == ["first"]
        scheduler.run_pending()
        assert calls == ["first", "second"]

    def test_failing_task_does_not_stop_the_others(self) -> None:
        scheduler = StatusScheduler(clock=FakeClock())
        calls = []

        def boom() -> None:
            raise RuntimeError("database unavailable")

        scheduler.schedule(0, boom)
        scheduler.schedule(0, calls.append, "after")
        assert scheduler.run_pending() == 2
        assert calls == ["after"]


class TestLifecycle:
    def test_stop_drops_pending_tasks(self) -> None:
        scheduler = StatusScheduler(clock=FakeClock())
        scheduler.schedule(10, print)
        scheduler.schedule(20, print)
        assert scheduler.stop() == 2
        assert scheduler.pending_count() == 0

    def test_worker_thread_runs_due_tasks(self) -> None:
        scheduler = StatusScheduler()
        done = threading.Event()
        scheduler.start()
        try:
            assert scheduler.is_running()
            scheduler.schedule(0.05, done.set)
            assert done.wait(timeout=5)
        finally:
            scheduler.stop()
        assert not scheduler.is_running()
