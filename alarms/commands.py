from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import ValidationError
from .manager import AlarmManager
from .parser import AlarmCommand, parse_command
from .scheduler import format_clock
from .snooze import RingState
from .storage import Alarm, Monthly, Weekly

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

HELP_TEXT = (
    "Commands: add HH[:MM[:SS]] [none|daily|weekly <day>|monthly <day>], list, "
    "toggle <n>, delete <n>, clear, stop, snooze, status, quit"
)


@dataclass
class CommandResult:
    handled: bool
    response_text: Optional[str] = None
    action: Optional[str] = None
    quit: bool = False


class CommandRouter:
    def __init__(self, alarm_manager: AlarmManager):
        self.alarm_manager = alarm_manager

    def handle_text(self, text: str) -> Optional[CommandResult]:
        parsed = parse_command(text)
        if not parsed:
            return None
        logger.debug("Console command parsed: %s", parsed)
        if parsed.action == "quit":
            return CommandResult(handled=True, response_text="Bye.", action="quit", quit=True)
        if parsed.action == "help":
            return CommandResult(handled=True, response_text=HELP_TEXT, action="help")
        if parsed.action == "unknown":
            return CommandResult(handled=True, response_text=parsed.error, action="unknown")
        response = self.alarm_manager.call(self._dispatch, parsed)
        return CommandResult(handled=True, response_text=response, action=parsed.action)

    def _dispatch(self, parsed: AlarmCommand) -> str:
        registry = self.alarm_manager.registry
        snooze = self.alarm_manager.snooze

        if parsed.action == "list":
            alarms = registry.snapshot()
            if not alarms:
                return "No alarms set."
            return "Alarms:\n" + "\n".join(_format_list(alarms))

        if parsed.action == "add":
            try:
                alarm = registry.create(parsed.hour, parsed.minute, parsed.second, parsed.recurrence)
            except ValidationError as exc:
                return str(exc)
            if alarm is None:
                return "That alarm already exists."
            return f"Alarm set for {describe_alarm(alarm)}."

        if parsed.action in ("toggle", "delete"):
            alarm = _pick(registry.snapshot(), parsed.index)
            if alarm is None:
                return "No such alarm."
            if parsed.action == "toggle":
                updated = registry.toggle(alarm.id)
                state = "on" if updated and updated.is_active else "off"
                return f"Alarm {alarm.time_str} turned {state}."
            registry.delete(alarm.id)
            return f"Deleted alarm {alarm.time_str}."

        if parsed.action == "clear":
            count = registry.clear()
            return f"Cleared {count} alarms."

        if parsed.action == "stop":
            previous = snooze.stop()
            if previous is RingState.IDLE:
                return "Nothing is ringing."
            return "Alarm stopped."

        if parsed.action == "snooze":
            until = snooze.snooze()
            if until is None:
                return "Nothing is ringing, nothing to snooze."
            return f"Snoozed until {format_clock(until)}."

        if parsed.action == "status":
            state = snooze.state
            if state is RingState.SNOOZED and snooze.snoozed_until:
                return f"Snoozed until {format_clock(snooze.snoozed_until)}."
            active = sum(1 for a in registry.snapshot() if a.is_active)
            return f"{state.value.capitalize()}, {active} of {len(registry)} alarms active."

        return f"Unsupported command: {parsed.action}"


def describe_alarm(alarm: Alarm) -> str:
    recurrence = alarm.recurrence
    if isinstance(recurrence, Weekly):
        repeat = f"every {DAY_NAMES[recurrence.day_of_week]}"
    elif isinstance(recurrence, Monthly):
        repeat = f"monthly on day {recurrence.day_of_month}"
    elif recurrence.kind == "daily":
        repeat = "daily"
    else:
        repeat = "once"
    return f"{alarm.time_str} ({repeat})"


def _format_list(alarms: List[Alarm]) -> List[str]:
    lines = []
    for idx, alarm in enumerate(alarms, start=1):
        state = "on" if alarm.is_active else "off"
        lines.append(f"{idx}) {describe_alarm(alarm)} [{state}]")
    return lines


def _pick(alarms: List[Alarm], index: Optional[int]) -> Optional[Alarm]:
    if index is None or index < 1 or index > len(alarms):
        return None
    return alarms[index - 1]
