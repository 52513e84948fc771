import io
import wave

import pytest

from alarms.errors import NotificationError, PlaybackError
from alarms.notifications import ConsoleNotifier, SpokenNotifier
from alarms.sounds import PULSE_SECONDS, TONE_RATE, AlarmSoundPlayer, alarm_tone_frames, ensure_alarm_sound


class _Speaker:
    def __init__(self, available=True, accepts=True):
        self.available = available
        self.accepts = accepts
        self.spoken = []

    def speak_async(self, text):
        self.spoken.append(text)
        return self.accepts


def test_console_notifier_needs_permission():
    stream = io.StringIO()
    notifier = ConsoleNotifier(stream)

    notifier.show("Alarm!", "07:30:00")
    assert stream.getvalue() == ""

    assert notifier.request_permission()
    notifier.show("Alarm!", "07:30:00")
    assert stream.getvalue() == "\aAlarm! It is 07:30:00\n"


def test_console_notifier_wraps_stream_errors():
    stream = io.StringIO()
    stream.close()
    notifier = ConsoleNotifier(stream)
    notifier.request_permission()
    with pytest.raises(NotificationError):
        notifier.show("Alarm!", "07:30:00")


def test_spoken_notifier_speaks_and_prints():
    stream = io.StringIO()
    speaker = _Speaker()
    notifier = SpokenNotifier(speaker, fallback=ConsoleNotifier(stream))
    notifier.request_permission()

    notifier.show("Alarm!", "06:00:00")

    assert speaker.spoken == ["Alarm! It is 06:00:00"]
    assert "Alarm! It is 06:00:00" in stream.getvalue()


def test_spoken_notifier_failure():
    notifier = SpokenNotifier(_Speaker(accepts=True), fallback=ConsoleNotifier(io.StringIO()))
    notifier.speaker.accepts = False
    notifier.request_permission()
    with pytest.raises(NotificationError):
        notifier.show("Alarm!", "06:00:00")


def test_default_alarm_sound_is_generated(tmp_path):
    path = tmp_path / "sounds" / "alarm.wav"
    ensure_alarm_sound(path, duration_seconds=0.1)
    with wave.open(str(path)) as wav:
        assert wav.getframerate() == 24000
        assert wav.getnframes() == 2400


def test_player_raises_when_sound_cannot_be_prepared(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    player = AlarmSoundPlayer(blocker / "alarm.wav")
    with pytest.raises(PlaybackError):
        player.play()


def test_player_play_and_stop(tmp_path):
    player = AlarmSoundPlayer(tmp_path / "alarm.wav")
    player.play()
    player.stop()
    assert (tmp_path / "alarm.wav").exists()


class _DeniedConsole(ConsoleNotifier):
    def _request(self) -> bool:
        return False


def test_spoken_notifier_respects_fallback_permission():
    stream = io.StringIO()
    speaker = _Speaker()
    notifier = SpokenNotifier(speaker, fallback=_DeniedConsole(stream))
    notifier.request_permission()

    notifier.show("Alarm!", "06:00:00")

    assert stream.getvalue() == ""
    assert speaker.spoken == ["Alarm! It is 06:00:00"]


def test_alarm_tone_pulses_between_tone_and_silence():
    frames = alarm_tone_frames(0.5)
    pulse_bytes = int(PULSE_SECONDS * TONE_RATE) * 2

    assert len(frames) == TONE_RATE
    assert any(frames[:pulse_bytes])
    assert not any(frames[pulse_bytes:])
