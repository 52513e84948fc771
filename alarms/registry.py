from __future__ import annotations

import logging
from datetime import time
from typing import List, Optional

from .parser import validate_time_fields
from .storage import Alarm, AlarmStore, Once, Recurrence, new_alarm_id

logger = logging.getLogger(__name__)


class AlarmRegistry:
    """Owns the alarm list, ordered by time of day, one entry per (time, recurrence)."""

    def __init__(self, store: Optional[AlarmStore] = None):
        self.store = store
        self._alarms: List[Alarm] = []

    def load(self) -> int:
        if self.store is None:
            return 0
        self._alarms = []
        for alarm in self.store.load():
            if self._find_duplicate(alarm) is not None:
                logger.warning("Dropping duplicate stored alarm %s at %s", alarm.id, alarm.time_str)
                continue
            self._alarms.append(alarm)
        self._sort()
        return len(self._alarms)

    def snapshot(self) -> List[Alarm]:
        return list(self._alarms)

    def __len__(self) -> int:
        return len(self._alarms)

    def get(self, alarm_id: str) -> Optional[Alarm]:
        for alarm in self._alarms:
            if alarm.id == alarm_id:
                return alarm
        return None

    def create(self, hour: int, minute: int, second: int, recurrence: Recurrence | None = None) -> Optional[Alarm]:
        """Validate the fields and add a new active alarm.

        Returns the stored alarm, or None when an identical one already exists.
        Raises ValidationError for out-of-range fields.
        """
        validate_time_fields(hour, minute, second)
        alarm = Alarm(
            id=new_alarm_id(),
            time=time(hour, minute, second),
            recurrence=recurrence or Once(),
        )
        return alarm if self.add(alarm) else None

    def add(self, alarm: Alarm) -> bool:
        if self._find_duplicate(alarm) is not None:
            logger.info("Ignoring duplicate alarm at %s (%s)", alarm.time_str, alarm.recurrence.kind)
            return False
        self._alarms.append(alarm)
        self._sort()
        self._save()
        logger.info("Alarm %s added for %s (%s)", alarm.id, alarm.time_str, alarm.recurrence.kind)
        return True

    def toggle(self, alarm_id: str) -> Optional[Alarm]:
        current = self.get(alarm_id)
        if current is None:
            return None
        return self.set_active(alarm_id, not current.is_active)

    def set_active(self, alarm_id: str, is_active: bool) -> Optional[Alarm]:
        for idx, alarm in enumerate(self._alarms):
            if alarm.id != alarm_id:
                continue
            if alarm.is_active == is_active:
                return alarm
            updated = alarm.with_active(is_active)
            self._alarms[idx] = updated
            self._save()
            logger.info("Alarm %s %s", alarm_id, "activated" if is_active else "deactivated")
            return updated
        return None

    def delete(self, alarm_id: str) -> Optional[Alarm]:
        removed = self.get(alarm_id)
        if removed is None:
            return None
        self._alarms = [a for a in self._alarms if a.id != alarm_id]
        self._save()
        logger.info("Removed alarm %s", alarm_id)
        return removed

    def clear(self) -> int:
        count = len(self._alarms)
        self._alarms = []
        self._save()
        logger.info("Cleared %s alarms", count)
        return count

    def _find_duplicate(self, alarm: Alarm) -> Optional[Alarm]:
        for existing in self._alarms:
            if existing.dedup_key == alarm.dedup_key:
                return existing
        return None

    def _sort(self) -> None:
        self._alarms.sort(key=lambda a: a.time_str)

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self._alarms)
        except OSError:
            logger.error("Failed to persist %s alarms", len(self._alarms), exc_info=True)
