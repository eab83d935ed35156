"""Calendar source interface."""

from datetime import date
from typing import Protocol

from blockplan.core.calendar import Event


class CalendarSource(Protocol):
    """Interface for reading calendar events from any backend."""

    def fetch_day(self, target_date: date) -> list[Event]:
        """Fetch events for a specific date."""
        ...

    def fetch_range(self, start_date: date, end_date: date) -> list[Event]:
        """Fetch events between two dates, inclusive."""
        ...
