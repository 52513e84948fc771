from __future__ import annotations

import logging
import math
import wave
from pathlib import Path
from threading import Event, Lock, Thread
from typing import Callable, Optional

from .errors import PlaybackError

try:
    import winsound
except ImportError:  # pragma: no cover - non-Windows fallback
    winsound = None  # type: ignore

try:  # Optional local TTS for spoken notifications
    import pyttsx3
except ImportError:  # pragma: no cover - optional
    pyttsx3 = None  # type: ignore

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception], None]


TONE_RATE = 24000
TONE_FREQ = 880.0
PULSE_SECONDS = 0.25


def alarm_tone_frames(duration_seconds: float, sample_rate: int = TONE_RATE) -> bytes:
    """16-bit mono PCM: alternating tone and silence pulses, like a bedside alarm."""
    pulse = int(PULSE_SECONDS * sample_rate)
    frames = bytearray()
    for i in range(int(duration_seconds * sample_rate)):
        if (i // pulse) % 2:
            value = 0
        else:
            value = int(32767 * 0.4 * math.sin(2 * math.pi * TONE_FREQ * i / sample_rate))
        frames.extend(value.to_bytes(2, byteorder="little", signed=True))
    return bytes(frames)


def ensure_alarm_sound(path: Path, duration_seconds: float = 1.5) -> None:
    """Write the default alarm tone to ``path`` unless a sound is already there."""
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(TONE_RATE)
        wav.writeframes(alarm_tone_frames(duration_seconds))
    logger.info("Generated default alarm tone at %s", path)


class AlarmSoundPlayer:
    """Loops the alarm sound until ``stop`` is called.

    ``play`` returns immediately. Problems found while preparing the sound raise
    PlaybackError; problems inside the background beep loop are reported to
    ``on_error`` instead, since nobody is waiting on that thread.
    """

    def __init__(self, sound_path: Path, on_error: Optional[ErrorCallback] = None):
        self.sound_path = Path(sound_path)
        self.on_error = on_error
        self._stop_event = Event()
        self._beep_thread: Optional[Thread] = None

    def play(self) -> None:
        try:
            ensure_alarm_sound(self.sound_path)
        except (OSError, wave.Error) as exc:
            raise PlaybackError(f"Alarm sound {self.sound_path} is unavailable: {exc}") from exc
        self._stop_event.clear()
        if winsound:
            try:
                winsound.PlaySound(
                    str(self.sound_path),
                    winsound.SND_FILENAME | winsound.SND_LOOP | winsound.SND_ASYNC,
                )
                return
            except RuntimeError:
                logger.warning("winsound.PlaySound failed, falling back to beep loop")

        # Generic fallback: simple beep loop in thread
        if self._beep_thread and self._beep_thread.is_alive():
            return
        self._beep_thread = Thread(target=self._beep_loop, name="alarm-beep", daemon=True)
        self._beep_thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if winsound:
            try:
                winsound.PlaySound(None, winsound.SND_PURGE)
            except RuntimeError:
                logger.debug("winsound.PlaySound purge failed")

    def _beep_loop(self) -> None:  # pragma: no cover - timing loop
        while not self._stop_event.is_set():
            if winsound:
                try:
                    winsound.Beep(880, 250)
                except RuntimeError as exc:
                    self._report(PlaybackError(f"winsound.Beep failed: {exc}"))
                    return
            else:
                logger.info("Alarm ringing...")
            self._stop_event.wait(0.75)

    def _report(self, exc: Exception) -> None:
        logger.warning("Alarm playback stopped: %s", exc)
        if self.on_error:
            self.on_error(exc)


class LocalSpeaker:
    """Speaks notification text through pyttsx3, one utterance at a time."""

    def __init__(self) -> None:
        self._engine = pyttsx3.init() if pyttsx3 else None
        self._lock = Lock()

    @property
    def available(self) -> bool:
        return self._engine is not None

    def speak_async(self, text: str) -> bool:
        if not self._engine:
            return False
        Thread(target=self._speak, args=(text,), name="alarm-speech", daemon=True).start()
        return True

    def _speak(self, text: str) -> None:
        with self._lock:
            try:
                self._engine.say(text)
                self._engine.runAndWait()
            except Exception:  # pragma: no cover - engine runtime errors
                logger.error("pyttsx3 failed to speak notification", exc_info=True)
