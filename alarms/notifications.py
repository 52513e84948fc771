from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from .errors import NotificationError
from .sounds import LocalSpeaker

logger = logging.getLogger(__name__)


def format_notification(text: str, when: str) -> str:
    return f"{text} It is {when}"


class Notifier:
    """Shows alarm notifications once permission has been granted."""

    def __init__(self) -> None:
        self.permission_granted = False

    def request_permission(self) -> bool:
        if not self.permission_granted:
            self.permission_granted = self._request()
            logger.info("Notification permission %s", "granted" if self.permission_granted else "denied")
        return self.permission_granted

    def show(self, text: str, when: str) -> None:
        if not self.permission_granted:
            logger.debug("Notification suppressed, permission not granted: %s", text)
            return
        self._deliver(text, when)

    def _request(self) -> bool:
        return True

    def _deliver(self, text: str, when: str) -> None:
        raise NotImplementedError


class ConsoleNotifier(Notifier):
    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self.stream = stream

    def _deliver(self, text: str, when: str) -> None:
        message = format_notification(text, when)
        stream = self.stream or sys.stdout
        try:
            stream.write(f"\a{message}\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            raise NotificationError(f"Console notification failed: {exc}") from exc


class SpokenNotifier(Notifier):
    """Reads notifications aloud through pyttsx3 and mirrors them to the console."""

    def __init__(self, speaker: LocalSpeaker, fallback: Optional[Notifier] = None):
        super().__init__()
        self.speaker = speaker
        self.fallback = fallback or ConsoleNotifier()

    def _request(self) -> bool:
        self.fallback.request_permission()
        if not self.speaker.available:
            logger.warning("pyttsx3 is not available, notifications will only be printed")
        return True

    def _deliver(self, text: str, when: str) -> None:
        self.fallback.show(text, when)
        if self.speaker.available and not self.speaker.speak_async(format_notification(text, when)):
            raise NotificationError("Speech engine refused the notification")
