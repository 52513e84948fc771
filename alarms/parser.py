from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import ValidationError
from .storage import Daily, Monthly, Once, Recurrence, Weekly

WEEKDAYS = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
}

INVALID_TIME_MESSAGE = "Invalid time. Please enter valid values!"


@dataclass
class AlarmCommand:
    action: str
    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[int] = None
    recurrence: Optional[Recurrence] = None
    index: Optional[int] = None
    error: Optional[str] = None
    raw_text: str = ""


def parse_int_field(value) -> int:
    """Read a form field the lenient way: leading digits count, anything else is 0."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    match = re.match(r"\s*([+-]?\d+)", str(value))
    if not match:
        return 0
    return int(match.group(1))


def validate_time_fields(hour: int, minute: int, second: int) -> None:
    if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
        raise ValidationError(INVALID_TIME_MESSAGE)


def parse_time_input(hour, minute, second) -> Tuple[int, int, int]:
    """Turn raw hour/minute/second inputs into validated integers."""
    fields = (parse_int_field(hour), parse_int_field(minute), parse_int_field(second))
    validate_time_fields(*fields)
    return fields


def parse_clock_text(text: str) -> Tuple[int, int, int]:
    """Parse ``HH``, ``HH:MM`` or ``HH:MM:SS`` into validated fields."""
    match = re.fullmatch(r"\s*(\d{1,2})(?::(\d{1,2}))?(?::(\d{1,2}))?\s*", text)
    if not match:
        raise ValidationError(INVALID_TIME_MESSAGE)
    return parse_time_input(*match.groups())


def parse_recurrence(words: Sequence[str]) -> Recurrence:
    if not words:
        return Once()
    kind = words[0].lower()
    if kind in ("none", "once"):
        return Once()
    if kind == "daily":
        return Daily()
    if kind == "weekly":
        if len(words) < 2:
            raise ValidationError("Weekly alarms need a day (0-6 or a day name).")
        day = words[1].lower()
        if day in WEEKDAYS:
            return Weekly(WEEKDAYS[day])
        if day.isdigit() and 0 <= int(day) <= 6:
            return Weekly(int(day))
        raise ValidationError(f"Unknown day of week: {words[1]}")
    if kind == "monthly":
        if len(words) < 2 or not words[1].isdigit() or not 1 <= int(words[1]) <= 31:
            raise ValidationError("Monthly alarms need a day of month between 1 and 31.")
        return Monthly(int(words[1]))
    raise ValidationError(f"Unknown recurrence: {words[0]}")


def parse_command(text: str) -> Optional[AlarmCommand]:
    """Parse one console line into a structured command."""
    cleaned = text.strip()
    if not cleaned:
        return None
    words = cleaned.split()
    action = words[0].lower()
    args = words[1:]

    if action in ("list", "ls"):
        return AlarmCommand(action="list", raw_text=cleaned)
    if action in ("stop", "snooze", "clear", "status", "quit", "exit", "help"):
        return AlarmCommand(action="quit" if action == "exit" else action, raw_text=cleaned)

    if action in ("toggle", "delete", "rm"):
        index = _extract_index(args)
        if index is None:
            return AlarmCommand(
                action="unknown",
                error=f"Usage: {action} <number from list>",
                raw_text=cleaned,
            )
        return AlarmCommand(action="delete" if action == "rm" else action, index=index, raw_text=cleaned)

    if action == "add":
        if not args:
            return AlarmCommand(action="unknown", error="Usage: add HH[:MM[:SS]] [recurrence]", raw_text=cleaned)
        try:
            hour, minute, second = parse_clock_text(args[0])
            recurrence = parse_recurrence(args[1:])
        except ValidationError as exc:
            return AlarmCommand(action="unknown", error=str(exc), raw_text=cleaned)
        return AlarmCommand(
            action="add",
            hour=hour,
            minute=minute,
            second=second,
            recurrence=recurrence,
            raw_text=cleaned,
        )

    return AlarmCommand(action="unknown", error=f"Unknown command: {words[0]}", raw_text=cleaned)


def _extract_index(args: Sequence[str]) -> Optional[int]:
    if not args:
        return None
    match = re.fullmatch(r"#?(\d+)", args[0])
    if match:
        return int(match.group(1))
    return None
