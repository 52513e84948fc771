import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


@dataclass
class Config:
    alarms_path: Path
    alarm_sound_path: Path
    tick_interval_ms: int
    snooze_minutes: int
    enable_speech: bool
    debug: bool
    log_level: str


def load_config(env_path: Optional[Path] = None) -> Config:
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    alarms_path = Path(os.getenv("ALARM_STORAGE_PATH", "data/alarms.json"))
    alarm_sound_path = Path(os.getenv("ALARM_SOUND_PATH", "data/alarm.wav"))
    tick_interval_ms = _get_env_int("ALARM_TICK_INTERVAL_MS", 1000)
    snooze_minutes = max(1, _get_env_int("ALARM_SNOOZE_MIN", 5))
    enable_speech = _get_env_bool("ENABLE_SPEECH", False)
    debug = _get_env_bool("DEBUG", False)
    log_level = "DEBUG" if debug else os.getenv("LOG_LEVEL", "INFO").upper()

    return Config(
        alarms_path=alarms_path,
        alarm_sound_path=alarm_sound_path,
        tick_interval_ms=tick_interval_ms,
        snooze_minutes=snooze_minutes,
        enable_speech=enable_speech,
        debug=debug,
        log_level=log_level,
    )


def setup_logging(log_level: str = "INFO", logs_dir: Path = Path("logs")) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_path = logs_dir / "alarm_clock.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[file_handler, console_handler],
    )
