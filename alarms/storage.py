from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import time
from pathlib import Path
from typing import List, Protocol, Sequence, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Once:
    kind: str = field(default="none", init=False)


@dataclass(frozen=True)
class Daily:
    kind: str = field(default="daily", init=False)


@dataclass(frozen=True)
class Weekly:
    day_of_week: int  # 0 = Monday, as datetime.weekday()
    kind: str = field(default="weekly", init=False)

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {self.day_of_week}")


@dataclass(frozen=True)
class Monthly:
    day_of_month: int
    kind: str = field(default="monthly", init=False)

    def __post_init__(self) -> None:
        if not 1 <= self.day_of_month <= 31:
            raise ValueError(f"day_of_month must be 1-31, got {self.day_of_month}")


Recurrence = Union[Once, Daily, Weekly, Monthly]


def new_alarm_id() -> str:
    return f"al_{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Alarm:
    id: str
    time: time
    recurrence: Recurrence = field(default_factory=Once)
    is_active: bool = True

    @property
    def time_str(self) -> str:
        return self.time.strftime("%H:%M:%S")

    @property
    def dedup_key(self) -> tuple:
        return (self.time_str, self.recurrence)

    def with_active(self, is_active: bool) -> "Alarm":
        return replace(self, is_active=is_active)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "time": self.time_str,
            "is_active": self.is_active,
            "recurrence": self.recurrence.kind,
        }
        if isinstance(self.recurrence, Weekly):
            data["day_of_week"] = self.recurrence.day_of_week
        elif isinstance(self.recurrence, Monthly):
            data["day_of_month"] = self.recurrence.day_of_month
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Alarm":
        time_raw = data.get("time")
        if not time_raw:
            raise ValueError("Alarm payload missing time field")
        is_active = data.get("is_active", data.get("isActive", True))
        return cls(
            id=str(data.get("id") or new_alarm_id()),
            time=time.fromisoformat(str(time_raw)).replace(microsecond=0),
            recurrence=recurrence_from_dict(data),
            is_active=bool(is_active),
        )


def recurrence_from_dict(data: dict) -> Recurrence:
    kind = str(data.get("recurrence") or "none").lower()
    if kind == "none":
        return Once()
    if kind == "daily":
        return Daily()
    if kind == "weekly":
        day = data.get("day_of_week", data.get("dayOfWeek"))
        if day is None:
            raise ValueError("Weekly alarm missing day_of_week")
        return Weekly(int(day))
    if kind == "monthly":
        day = data.get("day_of_month", data.get("dayOfMonth"))
        if day is None:
            raise ValueError("Monthly alarm missing day_of_month")
        return Monthly(int(day))
    raise ValueError(f"Unknown recurrence {kind!r}")


class AlarmStore(Protocol):
    def load(self) -> List[Alarm]: ...

    def save(self, alarms: Sequence[Alarm]) -> None: ...


class JsonAlarmStore:
    """Keeps the alarm list in a UTF-8 JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Alarm]:
        return load_alarms(self.path)

    def save(self, alarms: Sequence[Alarm]) -> None:
        save_alarms(self.path, alarms)


def load_alarms(path: Path) -> List[Alarm]:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except Exception as exc:  # pragma: no cover - corrupted file
        logger.error("Failed to load alarms from %s: %s", path, exc)
        return []
    if not isinstance(payload, list):
        logger.error("Alarm file %s does not hold a list, ignoring it", path)
        return []
    alarms: List[Alarm] = []
    for item in payload:
        try:
            alarms.append(Alarm.from_dict(item))
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Skipping alarm item due to parse error: %s", exc)
    return alarms


def save_alarms(path: Path, alarms: Sequence[Alarm]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    serializable = [a.to_dict() for a in alarms]
    with path.open("w", encoding="utf-8") as f:
        json.dump(serializable, f, ensure_ascii=False, indent=2)
