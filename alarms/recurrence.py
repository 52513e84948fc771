"""Decides whether an alarm matches a given wall-clock instant."""

from __future__ import annotations

from datetime import datetime

from .storage import Alarm, Daily, Monthly, Once, Weekly


def should_fire(alarm: Alarm, now: datetime) -> bool:
    """Return True when ``alarm`` is due at ``now``.

    Matching happens at second granularity on the time of day. Weekly alarms
    also need ``now.weekday()`` to equal their day, monthly alarms need
    ``now.day`` to equal theirs. Unknown recurrence values never fire.
    """
    if alarm.time != now.time().replace(microsecond=0):
        return False
    recurrence = alarm.recurrence
    if isinstance(recurrence, (Once, Daily)):
        return True
    if isinstance(recurrence, Weekly):
        return now.weekday() == recurrence.day_of_week
    if isinstance(recurrence, Monthly):
        return now.day == recurrence.day_of_month
    return False
