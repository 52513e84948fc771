from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from .errors import NotificationError, PlaybackError
from .recurrence import should_fire
from .registry import AlarmRegistry
from .scheduler import local_now
from .storage import Alarm, Once

logger = logging.getLogger(__name__)

ALARM_TEXT = "Alarm!"


class SoundPlayer(Protocol):
    def play(self) -> None: ...

    def stop(self) -> None: ...


class NotificationSink(Protocol):
    def show(self, text: str, when: str) -> None: ...


class TriggerEngine:
    """Evaluates the registry once per tick and fires every matching alarm."""

    def __init__(
        self,
        registry: AlarmRegistry,
        sound_player: SoundPlayer,
        notifier: NotificationSink,
        clock: Callable[[], datetime] = local_now,
        evaluator: Callable[[Alarm, datetime], bool] = should_fire,
        on_alarm_triggered: Optional[Callable[[Alarm], None]] = None,
    ):
        self.registry = registry
        self.sound_player = sound_player
        self.notifier = notifier
        self.clock = clock
        self.evaluator = evaluator
        self.on_alarm_triggered = on_alarm_triggered
        self.is_ringing = False
        self._last_second: Optional[datetime] = None

    def on_tick(self, now: Optional[datetime] = None) -> List[Alarm]:
        """Fire every active alarm matching ``now``; a second is only evaluated once."""
        now = now or self.clock()
        second = now.replace(microsecond=0)
        if second == self._last_second:
            return []
        self._last_second = second
        fired: List[Alarm] = []
        for alarm in self.registry.snapshot():
            if not alarm.is_active or not self.evaluator(alarm, now):
                continue
            self.fire(alarm)
            fired.append(alarm)
        return fired

    def fire(self, alarm: Alarm) -> None:
        logger.info("Alarm %s triggered at %s (%s)", alarm.id, alarm.time_str, alarm.recurrence.kind)
        self.ring(alarm.time_str)
        if isinstance(alarm.recurrence, Once):
            self.registry.set_active(alarm.id, False)
        if self.on_alarm_triggered:
            try:
                self.on_alarm_triggered(alarm)
            except Exception:  # pragma: no cover - callback safety
                logger.error("on_alarm_triggered callback failed", exc_info=True)

    def ring(self, when: str) -> None:
        """Start the sound and show a notification for ``when``."""
        self.is_ringing = True
        try:
            self.sound_player.play()
        except PlaybackError as exc:
            self.playback_failed(exc)
        except Exception:
            logger.error("Alarm sound player failed", exc_info=True)
            self.is_ringing = False
        try:
            self.notifier.show(ALARM_TEXT, when)
        except NotificationError as exc:
            logger.error("Failed to show alarm notification: %s", exc)
            self.silence()
        except Exception:
            logger.error("Alarm notifier failed", exc_info=True)
            self.silence()

    def silence(self) -> None:
        self.is_ringing = False
        try:
            self.sound_player.stop()
        except Exception:
            logger.error("Failed to stop alarm sound", exc_info=True)

    def playback_failed(self, exc: Exception) -> None:
        logger.error("Failed to play alarm sound: %s", exc)
        self.is_ringing = False
