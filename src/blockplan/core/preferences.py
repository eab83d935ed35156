"""Scheduling preferences and energy-level adjustment - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import time, timedelta

LOW_ENERGY = 30
HIGH_ENERGY = 70

LOW_ENERGY_FOCUS = timedelta(minutes=25)
LOW_ENERGY_BREAK = timedelta(minutes=15)
MEDIUM_ENERGY_FOCUS = timedelta(minutes=50)
HIGH_ENERGY_FOCUS = timedelta(minutes=90)


def parse_time_of_day(value: str) -> time:
    """Parse "HH:MM" into a time. Raises ValueError on anything else."""
    hours, sep, minutes = value.strip().partition(":")
    if not sep:
        raise ValueError(f"Expected HH:MM, got {value!r}")
    return time(int(hours), int(minutes))


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Expected a boolean, got {value!r}")


@dataclass(frozen=True)
class SchedulingPreferences:
    """Run-time configuration for one scheduling invocation."""

    work_start: time = time(9, 0)
    work_end: time = time(17, 0)
    break_duration: timedelta = timedelta(minutes=15)
    focus_block_duration: timedelta = timedelta(minutes=90)
    lunch_break: bool = False
    lunch_time: time = time(12, 0)
    lunch_duration: timedelta = timedelta(minutes=60)
    prioritize_mornings: bool = False
    energy_level: int = 70
    buffer_between_meetings: timedelta = timedelta(0)
    respect_energy_levels: bool = True
    include_low_priority: bool = True

    def is_valid(self) -> bool:
        """Durations positive and working hours correctly ordered."""
        if self.work_start >= self.work_end:
            return False
        if self.focus_block_duration <= timedelta(0) or self.break_duration <= timedelta(0):
            return False
        if self.lunch_break and self.lunch_duration <= timedelta(0):
            return False
        return self.buffer_between_meetings >= timedelta(0)

    @property
    def work_hours_str(self) -> str:
        return f"{self.work_start.strftime('%H:%M')}-{self.work_end.strftime('%H:%M')}"

    @classmethod
    def from_dict(cls, data: dict) -> "SchedulingPreferences":
        """
        Build preferences from the app's settings payload.

        Keys are camelCase, durations are minutes, every key is optional.
        Raises ValueError for values that cannot be parsed.
        """
        defaults = cls()

        def minutes(key: str, default: timedelta) -> timedelta:
            if data.get(key) is None:
                return default
            return timedelta(minutes=int(data[key]))

        def time_of_day(key: str, default: time) -> time:
            if not data.get(key):
                return default
            return parse_time_of_day(data[key])

        def flag(key: str, default: bool) -> bool:
            if data.get(key) is None:
                return default
            return parse_bool(data[key])

        return cls(
            work_start=time_of_day("startTime", defaults.work_start),
            work_end=time_of_day("endTime", defaults.work_end),
            break_duration=minutes("breakDuration", defaults.break_duration),
            focus_block_duration=minutes("focusBlockDuration", defaults.focus_block_duration),
            lunch_break=flag("lunchBreak", defaults.lunch_break),
            lunch_time=time_of_day("lunchTime", defaults.lunch_time),
            lunch_duration=minutes("lunchDuration", defaults.lunch_duration),
            prioritize_mornings=flag("prioritizeMornings", defaults.prioritize_mornings),
            energy_level=(
                defaults.energy_level if data.get("energyLevel") is None else int(data["energyLevel"])
            ),
            buffer_between_meetings=minutes("bufferBetweenMeetings", defaults.buffer_between_meetings),
            respect_energy_levels=flag("respectEnergyLevels", defaults.respect_energy_levels),
            include_low_priority=flag("includeLowPriority", defaults.include_low_priority),
        )


def clamp_energy(energy_level: int) -> int:
    return max(0, min(100, int(energy_level)))


def adjust_for_energy(prefs: SchedulingPreferences, energy_level: int) -> SchedulingPreferences:
    """
    Scale focus and break durations to an energy level (0-100).

    Low (<30): focus capped at 25 min, break at least 15 min.
    Medium (30-69): focus capped at 50 min.
    High (70+): focus raised to 90 min if configured shorter.

    Pure function - returns a new preferences value.
    """
    level = clamp_energy(energy_level)
    focus = prefs.focus_block_duration
    brk = prefs.break_duration

    if level < LOW_ENERGY:
        focus = min(focus, LOW_ENERGY_FOCUS)
        brk = max(brk, LOW_ENERGY_BREAK)
    elif level < HIGH_ENERGY:
        focus = min(focus, MEDIUM_ENERGY_FOCUS)
    elif focus < HIGH_ENERGY_FOCUS:
        focus = HIGH_ENERGY_FOCUS

    return replace(prefs, focus_block_duration=focus, break_duration=brk, energy_level=level)
