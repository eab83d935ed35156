"""Configuration management for blockplan."""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .core.preferences import SchedulingPreferences, parse_bool, parse_time_of_day

logger = logging.getLogger(__name__)

BLOCKPLAN_HOME = Path(os.environ.get("BLOCKPLAN_HOME", Path.home() / "blockplan"))
CONFIG_FILE = BLOCKPLAN_HOME / "config" / "blockplan.conf"
DATA_DIR = BLOCKPLAN_HOME / "data"


@dataclass
class Config:
    """blockplan configuration."""

    timezone: str = ""
    work_hours: str = "09:00-17:00"
    break_duration: int = 15
    focus_block_duration: int = 90
    lunch_break: bool = False
    lunch_time: str = "12:00"
    lunch_duration: int = 60
    prioritize_mornings: bool = False
    energy_level: int = 70
    buffer_between_meetings: int = 0
    respect_energy_levels: bool = True
    include_low_priority: bool = True
    tasks_file: str = ""
    events_file: str = ""
    schedules_file: str = ""

    def data_path(self, name: str) -> Path:
        """Resolve a snapshot path, falling back to DATA_DIR/<kind>.json."""
        configured = getattr(self, f"{name}_file")
        if configured:
            return Path(configured).expanduser()
        return DATA_DIR / f"{name}.json"

    def to_preferences(self) -> SchedulingPreferences:
        """Build scheduling preferences. Raises ValueError on bad times."""
        start_str, _, end_str = self.work_hours.partition("-")
        return SchedulingPreferences(
            work_start=parse_time_of_day(start_str),
            work_end=parse_time_of_day(end_str),
            break_duration=timedelta(minutes=self.break_duration),
            focus_block_duration=timedelta(minutes=self.focus_block_duration),
            lunch_break=self.lunch_break,
            lunch_time=parse_time_of_day(self.lunch_time),
            lunch_duration=timedelta(minutes=self.lunch_duration),
            prioritize_mornings=self.prioritize_mornings,
            energy_level=self.energy_level,
            buffer_between_meetings=timedelta(minutes=self.buffer_between_meetings),
            respect_energy_levels=self.respect_energy_levels,
            include_low_priority=self.include_low_priority,
        )


def _strip_value(value: str) -> str:
    """Unquote a value and drop inline comments."""
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


_INT_KEYS = {
    "break_duration",
    "focus_block_duration",
    "lunch_duration",
    "energy_level",
    "buffer_between_meetings",
}
_BOOL_KEYS = {
    "lunch_break",
    "prioritize_mornings",
    "respect_energy_levels",
    "include_low_priority",
}
_STR_KEYS = {
    "timezone",
    "work_hours",
    "lunch_time",
    "tasks_file",
    "events_file",
    "schedules_file",
}


def load_config(path: Path | None = None) -> Config:
    """Load configuration from blockplan.conf. Unknown or bad values keep defaults."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        try:
            if key in _INT_KEYS:
                setattr(config, key, int(value))
            elif key in _BOOL_KEYS:
                setattr(config, key, parse_bool(value))
            elif key in _STR_KEYS:
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        except ValueError as e:
            logger.warning(f"Invalid value for {key.upper()}: {e}")

    return config
