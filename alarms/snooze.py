from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from .engine import TriggerEngine
from .scheduler import TickScheduler, TimerHandle, format_clock

logger = logging.getLogger(__name__)

DEFAULT_SNOOZE = timedelta(minutes=5)


class RingState(Enum):
    IDLE = "idle"
    RINGING = "ringing"
    SNOOZED = "snoozed"


class SnoozeController:
    def __init__(
        self,
        engine: TriggerEngine,
        scheduler: TickScheduler,
        delay: timedelta = DEFAULT_SNOOZE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.engine = engine
        self.scheduler = scheduler
        self.delay = delay
        self.clock = clock or engine.clock
        self._timer: Optional[TimerHandle] = None
        self._snoozed_until: Optional[datetime] = None

    @property
    def state(self) -> RingState:
        if self.engine.is_ringing:
            return RingState.RINGING
        if self._timer is not None:
            return RingState.SNOOZED
        return RingState.IDLE

    @property
    def snoozed_until(self) -> Optional[datetime]:
        return self._snoozed_until if self._timer is not None else None

    def stop(self) -> RingState:
        """Silence the alarm and drop any pending snooze. Returns the state it left."""
        previous = self.state
        if previous is RingState.IDLE:
            return previous
        self._cancel_timer()
        self.engine.silence()
        logger.info("Alarm stopped (was %s)", previous.value)
        return previous

    def snooze(self) -> Optional[datetime]:
        """Stop ringing and ring again after the snooze delay.

        Returns the time the alarm will ring again, or None when nothing rings.
        """
        if not self.engine.is_ringing:
            logger.info("Snooze requested while nothing is ringing")
            return None
        self.stop()
        target = self.clock() + self.delay
        self._snoozed_until = target
        self._timer = self.scheduler.schedule_once(self.delay.total_seconds(), self._expire)
        logger.info("Alarm snoozed until %s", format_clock(target))
        return target

    def _expire(self) -> None:
        target = self._snoozed_until
        self._timer = None
        self._snoozed_until = None
        logger.info("Snooze over, ringing again")
        self.engine.ring(format_clock(target or self.clock()))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            logger.debug("Cancelled pending snooze timer")
        self._timer = None
        self._snoozed_until = None
