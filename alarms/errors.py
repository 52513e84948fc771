from __future__ import annotations


class AlarmError(Exception):
    """Base class for alarm clock errors."""


class ValidationError(AlarmError):
    """Raised when alarm input is out of range or malformed."""


class PlaybackError(AlarmError):
    """Raised when the alarm sound cannot be played."""


class NotificationError(AlarmError):
    """Raised when a notification cannot be shown."""
