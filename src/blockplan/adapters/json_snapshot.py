"""JSON snapshot adapters - read tasks, events and schedules from files."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Callable, TypeVar

from blockplan.core.calendar import Event, filter_events_by_date, sort_events_by_start
from blockplan.core.recurrence import ScheduleRule
from blockplan.core.tasks import TaskRef

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotError(Exception):
    """Raised when a snapshot file cannot be read as JSON records."""

    pass


def load_records(path: Path, key: str) -> list[dict]:
    """
    Load the record list from a snapshot file.

    Accepts either a bare JSON list or an object holding the list under
    `key`. A missing file is an empty snapshot.
    """
    if not path.exists():
        logger.info(f"Snapshot {path} not found, treating as empty")
        return []

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise SnapshotError(f"{path} does not contain a list of {key}")
    return data


def parse_records(records: list[dict], parse: Callable[[dict], T], kind: str) -> list[T]:
    """Parse each record, skipping the ones that do not fit."""
    parsed = []
    for i, item in enumerate(records):
        try:
            parsed.append(parse(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping {kind} #{i}: {e!r}")
    return parsed


class JsonTaskSource:
    """
    Task snapshot stored as JSON.

    Implements TaskSource protocol.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def fetch_all(self) -> list[TaskRef]:
        return parse_records(load_records(self.path, "tasks"), TaskRef.from_dict, "task")


class JsonCalendarSource:
    """
    Calendar snapshot stored as JSON.

    Implements CalendarSource protocol.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _fetch_all(self) -> list[Event]:
        return parse_records(load_records(self.path, "events"), Event.from_dict, "event")

    def fetch_day(self, target_date: date) -> list[Event]:
        """Fetch events for a specific date."""
        return self.fetch_range(target_date, target_date)

    def fetch_range(self, start_date: date, end_date: date) -> list[Event]:
        """Fetch events between two dates, inclusive."""
        events = filter_events_by_date(self._fetch_all(), start_date, end_date)
        return sort_events_by_start(events)


class JsonScheduleSource:
    """
    Automation schedules stored as JSON.

    Implements ScheduleSource protocol.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def fetch_all(self) -> list[ScheduleRule]:
        return parse_records(load_records(self.path, "schedules"), ScheduleRule.from_dict, "schedule")
