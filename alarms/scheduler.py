"""Cooperative single-thread scheduler for ticks and one-shot timers.

Every callback (the periodic tick, snooze timers and work posted from other
threads with ``call_soon``) runs on the thread that drives ``run_pending`` or
``run_forever``. Alarm state is therefore only ever touched from one thread
and needs no locking of its own.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from datetime import datetime, timedelta
from threading import Event, Lock
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

CLOCK_FORMAT = "%H:%M:%S"


def local_now() -> datetime:
    return datetime.now().replace(microsecond=0)


def format_clock(dt: datetime) -> str:
    return dt.strftime(CLOCK_FORMAT)


class TimerHandle:
    def __init__(self, due: float, callback: Callable[[], None], period: Optional[float] = None):
        self.due = due
        self.callback = callback
        self.period = period
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def repeating(self) -> bool:
        return self.period is not None


class ManualClock:
    """Virtual clock for tests: time only moves when ``advance`` is called."""

    def __init__(self, start: datetime):
        self._start = start
        self._elapsed = 0.0

    def monotonic(self) -> float:
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def advance(self, seconds: float) -> None:
        self._elapsed += seconds


class TickScheduler:
    def __init__(self, monotonic: Callable[[], float] = time.monotonic):
        self._monotonic = monotonic
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._lock = Lock()
        self._wakeup = Event()
        self._stop_event = Event()

    def schedule_repeating(self, period: float, callback: Callable[[], None]) -> TimerHandle:
        if period <= 0:
            raise ValueError("Repeating period must be positive")
        handle = TimerHandle(self._monotonic() + period, callback, period=period)
        self._push(handle)
        return handle

    def schedule_once(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._monotonic() + max(0.0, delay), callback)
        self._push(handle)
        return handle

    def call_soon(self, callback: Callable[..., None], *args) -> TimerHandle:
        """Queue ``callback`` for the scheduler thread. Safe to call from any thread."""
        if args:
            return self.schedule_once(0.0, lambda: callback(*args))
        return self.schedule_once(0.0, callback)

    def pending(self) -> int:
        with self._lock:
            return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def run_pending(self) -> int:
        """Run every callback that is due now, in due order. Returns how many ran."""
        ran = 0
        while True:
            now = self._monotonic()
            with self._lock:
                if not self._heap or self._heap[0][0] > now:
                    break
                _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            if handle.repeating:
                handle.due += handle.period
                if handle.due <= now - handle.period:
                    logger.debug("Scheduler fell behind by %.1fs, skipping ahead", now - handle.due)
                    handle.due = now + handle.period
                self._push(handle)
            self._run(handle)
            ran += 1
        return ran

    def next_delay(self) -> Optional[float]:
        with self._lock:
            while self._heap and self._heap[0][2].cancelled:
                heapq.heappop(self._heap)
            if not self._heap:
                return None
            return max(0.0, self._heap[0][0] - self._monotonic())

    def run_forever(self, max_wait: float = 1.0) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            delay = self.next_delay()
            wait = max_wait if delay is None else min(delay, max_wait)
            self._wakeup.wait(wait)
            self._wakeup.clear()

    def stop(self) -> None:
        self._stop_event.set()
        self._wakeup.set()

    def _push(self, handle: TimerHandle) -> None:
        with self._lock:
            heapq.heappush(self._heap, (handle.due, next(self._seq), handle))
        self._wakeup.set()

    def _run(self, handle: TimerHandle) -> None:
        try:
            handle.callback()
        except Exception:
            logger.error("Scheduled callback %r failed", handle.callback, exc_info=True)
