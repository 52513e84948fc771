import logging
import signal
import sys
from datetime import timedelta
from threading import Event, Thread

from alarms.commands import HELP_TEXT, CommandRouter
from alarms.manager import AlarmManager
from alarms.notifications import ConsoleNotifier, Notifier, SpokenNotifier
from alarms.sounds import AlarmSoundPlayer, LocalSpeaker
from alarms.storage import JsonAlarmStore
from config import Config, load_config, setup_logging

logger = logging.getLogger("alarm_clock")


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


class AlarmClockRuntime:
    def __init__(self, config: Config):
        self.config = config
        self.sound_player = AlarmSoundPlayer(config.alarm_sound_path)
        self.notifier = build_notifier(config)
        self.alarm_manager = AlarmManager(
            store=JsonAlarmStore(config.alarms_path),
            sound_player=self.sound_player,
            notifier=self.notifier,
            tick_interval=config.tick_interval_ms / 1000.0,
            snooze_delay=timedelta(minutes=config.snooze_minutes),
        )
        self.sound_player.on_error = self.alarm_manager.report_playback_error
        self.router = CommandRouter(self.alarm_manager)
        self._done = Event()

    def start(self) -> None:
        self.notifier.request_permission()
        self.alarm_manager.start()
        Thread(target=self._input_loop, name="alarm-console", daemon=True).start()

    def shutdown(self) -> None:
        self.alarm_manager.shutdown()

    def wait(self) -> None:
        while not self._done.wait(0.5):
            pass

    def _input_loop(self) -> None:
        print(HELP_TEXT)
        for line in sys.stdin:
            try:
                result = self.router.handle_text(line)
            except TimeoutError:
                logger.error("Command timed out: %s", line.strip())
                continue
            if not result:
                continue
            if result.response_text:
                print(result.response_text)
            if result.quit:
                break
        self._done.set()


def build_notifier(config: Config) -> Notifier:
    if config.enable_speech:
        return SpokenNotifier(LocalSpeaker())
    return ConsoleNotifier()


def main() -> None:
    signal.signal(signal.SIGINT, graceful_exit)
    config = load_config()
    setup_logging(config.log_level)
    logger.info("Starting alarm clock (storage=%s)", config.alarms_path)

    runtime = AlarmClockRuntime(config)
    runtime.start()
    try:
        runtime.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    main()
