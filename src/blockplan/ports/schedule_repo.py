"""Automation schedule source interface."""

from typing import Protocol

from blockplan.core.recurrence import ScheduleRule


class ScheduleSource(Protocol):
    """Interface for reading automation schedules."""

    def fetch_all(self) -> list[ScheduleRule]:
        """Fetch all schedule rules, enabled or not."""
        ...
