"""
Deferred task queue for simulated workflow steps.

Tasks are kept in a heap ordered by due time and executed by a single daemon
worker thread. Nothing is persisted: ``stop()`` drops whatever is still
pending, and a process restart loses it too. ``run_pending()`` can be driven
directly (with an explicit ``now``) when no worker thread is running.
"""

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    run_at: float
    seq: int
    name: str = field(compare=False)
    callback: Callable = field(compare=False)
    args: tuple = field(compare=False, default=())


class StatusScheduler:

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: List[ScheduledTask] = []
        self._seq = itertools.count()
        self._condition = threading.Condition()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def start(self):
        with self._condition:
            if self._running:
                logger.warning("Status scheduler already running")
                return
            self._running = True
        self._thread = threading.Thread(target=self._run, name="status-scheduler", daemon=True)
        self._thread.start()
        logger.info("Status scheduler started")

    def stop(self) -> int:
        """Stop the worker and discard pending tasks; returns how many were dropped."""
        with self._condition:
            self._running = False
            dropped = len(self._queue)
            self._queue.clear()
            self._condition.notify_all()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        if dropped:
            logger.warning(f"Status scheduler stopped with {dropped} pending task(s) dropped")
        else:
            logger.info("Status scheduler stopped")
        return dropped

    def is_running(self) -> bool:
        return self._running

    def schedule(self, delay_seconds: float, callback: Callable, *args, name: str = "") -> ScheduledTask:
        task = ScheduledTask(
            run_at=self._clock() + max(delay_seconds, 0),
            seq=next(self._seq),
            name=name or getattr(callback, "__name__", "task"),
            callback=callback,
            args=args,
        )
        with self._condition:
            heapq.heappush(self._queue, task)
            self._condition.notify_all()
        logger.debug(f"Scheduled {task.name} in {delay_seconds}s")
        return task

    def pending_count(self) -> int:
        with self._condition:
            return len(self._queue)

    def run_pending(self, now: Optional[float] = None) -> int:
        """Run every task due at ``now``; tasks scheduled while running wait for the next call."""
        now = self._clock() if now is None else now
        due = []
        with self._condition:
            while self._queue and self._queue[0].run_at <= now:
                due.append(heapq.heappop(self._queue))

        for task in due:
            try:
                task.callback(*task.args)
            except Exception:
                logger.error(f"Scheduled task {task.name} failed", exc_info=True)
        return len(due)

    def _run(self):
        while True:
            with self._condition:
                if not self._running:
                    return
                if not self._queue:
                    self._condition.wait()
                    continue
                wait = self._queue[0].run_at - self._clock()
                if wait > 0:
                    self._condition.wait(timeout=wait)
                    continue
            self.run_pending()


status_scheduler = StatusScheduler()
