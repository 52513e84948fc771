from __future__ import annotations

from datetime import datetime
from typing import List

import pytest

from alarms.errors import NotificationError, PlaybackError
from alarms.manager import AlarmManager
from alarms.scheduler import ManualClock, TickScheduler


class FakeSoundPlayer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.plays = 0
        self.stops = 0

    def play(self) -> None:
        if self.fail:
            raise PlaybackError("no audio device")
        self.plays += 1

    def stop(self) -> None:
        self.stops += 1


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.shown: List[tuple] = []

    def show(self, text: str, when: str) -> None:
        if self.fail:
            raise NotificationError("notifications unavailable")
        self.shown.append((text, when))


class MemoryStore:
    def __init__(self, alarms=None):
        self.alarms = list(alarms or [])
        self.saves = 0

    def load(self):
        return list(self.alarms)

    def save(self, alarms) -> None:
        self.alarms = list(alarms)
        self.saves += 1


@pytest.fixture
def clock() -> ManualClock:
    # Monday 6 January 2025
    return ManualClock(datetime(2025, 1, 6, 7, 29, 55))


@pytest.fixture
def sound() -> FakeSoundPlayer:
    return FakeSoundPlayer()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def manager(clock, sound, notifier, store) -> AlarmManager:
    mgr = AlarmManager(
        store=store,
        sound_player=sound,
        notifier=notifier,
        clock=clock.now,
        scheduler=TickScheduler(clock.monotonic),
    )
    mgr.start(background=False)
    return mgr


@pytest.fixture
def advance(clock, manager):
    """Move virtual time forward one second at a time, running due callbacks."""

    def _advance(seconds: int) -> None:
        for _ in range(seconds):
            clock.advance(1)
            manager.scheduler.run_pending()

    return _advance
