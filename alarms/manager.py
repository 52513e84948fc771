from __future__ import annotations

import logging
from concurrent.futures import Future
from datetime import datetime, timedelta
from threading import Thread, get_ident
from typing import Callable, Optional, TypeVar

from .engine import NotificationSink, SoundPlayer, TriggerEngine
from .registry import AlarmRegistry
from .scheduler import TickScheduler, TimerHandle, local_now
from .snooze import DEFAULT_SNOOZE, SnoozeController
from .storage import Alarm, AlarmStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AlarmManager:
    """Wires the registry, trigger engine and snooze controller to one scheduler thread."""

    def __init__(
        self,
        store: Optional[AlarmStore],
        sound_player: SoundPlayer,
        notifier: NotificationSink,
        tick_interval: float = 1.0,
        snooze_delay: timedelta = DEFAULT_SNOOZE,
        clock: Callable[[], datetime] = local_now,
        scheduler: Optional[TickScheduler] = None,
        on_alarm_triggered: Optional[Callable[[Alarm], None]] = None,
    ):
        self.tick_interval = max(0.2, tick_interval)
        self.scheduler = scheduler or TickScheduler()
        self.registry = AlarmRegistry(store)
        self.engine = TriggerEngine(
            self.registry,
            sound_player,
            notifier,
            clock=clock,
            on_alarm_triggered=on_alarm_triggered,
        )
        self.snooze = SnoozeController(self.engine, self.scheduler, delay=snooze_delay)

        self._tick: Optional[TimerHandle] = None
        self._thread: Optional[Thread] = None
        self._loop_ident: Optional[int] = None

    def start(self, background: bool = True) -> None:
        count = self.registry.load()
        logger.info("Loaded %s alarms", count)
        self._tick = self.scheduler.schedule_repeating(self.tick_interval, self.engine.on_tick)
        if background:
            self._thread = Thread(target=self._loop, name="alarm-scheduler", daemon=True)
            self._thread.start()

    def shutdown(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self.scheduler.stop()
        if self._thread:
            self._thread.join(timeout=2)
        self._thread = None
        self.engine.sound_player.stop()

    def call(self, fn: Callable[..., T], *args, timeout: Optional[float] = 5.0) -> T:
        """Run ``fn`` on the scheduler thread and wait for its result."""
        if self._thread is None or get_ident() == self._loop_ident:
            return fn(*args)
        future: Future = Future()

        def _invoke() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)

        self.scheduler.call_soon(_invoke)
        return future.result(timeout=timeout)

    def report_playback_error(self, exc: Exception) -> None:
        """Hand a background playback failure to the scheduler thread."""
        self.scheduler.call_soon(self.engine.playback_failed, exc)

    def _loop(self) -> None:
        self._loop_ident = get_ident()
        self.scheduler.run_forever(max_wait=self.tick_interval)
