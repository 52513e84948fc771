"""Alarm clock scheduler: registry, trigger engine and snooze handling."""

from .engine import TriggerEngine
from .errors import AlarmError, NotificationError, PlaybackError, ValidationError
from .manager import AlarmManager
from .recurrence import should_fire
from .registry import AlarmRegistry
from .snooze import RingState, SnoozeController
from .storage import Alarm, Daily, JsonAlarmStore, Monthly, Once, Weekly
