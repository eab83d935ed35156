"""Pure calendar domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Protocol, Sequence

from .intervals import Interval, merge, subtract
from .preferences import SchedulingPreferences

MIN_SLOT_MINUTES = 30
NOON = time(12, 0)
TICK_WIDTH = timedelta(minutes=15)

_UTC_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NAIVE_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Event:
    """A calendar event."""

    title: str
    start: datetime
    end: datetime | None
    location: str = ""
    calendar: str = ""
    all_day: bool = False
    source: str = ""

    @property
    def is_timed(self) -> bool:
        """Has a real time range (not all-day, has an end)."""
        return not self.all_day and self.end is not None and self.end > self.start

    def format_time(self) -> str:
        """Format the event time for display."""
        if self.all_day:
            return "All day"
        return self.start.strftime("%H:%M")

    def duration_minutes(self) -> int | None:
        """Event duration in minutes, or None if no end time."""
        if not self.end:
            return None
        return int((self.end - self.start).total_seconds() / 60)

    def to_interval(self) -> Interval | None:
        if not self.is_timed:
            return None
        return Interval(self.start, self.end)

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """Create an Event from a calendar-store record."""
        end = data.get("end")
        return cls(
            title=data.get("title", "Untitled") or "Untitled",
            start=datetime.fromisoformat(data["start"].replace("Z", "+00:00")),
            end=datetime.fromisoformat(end.replace("Z", "+00:00")) if end else None,
            location=data.get("location", "") or "",
            calendar=data.get("calendar", "") or "",
            all_day=bool(data.get("allDay", data.get("all_day", False))),
            source=data.get("source", "") or "",
        )


@dataclass(frozen=True)
class BusyInterval(Interval):
    """An occupied span. Merging joins the labels."""

    label: str | None = None

    def union(self, other: Interval) -> "BusyInterval":
        merged = super().union(other)
        other_label = getattr(other, "label", None)
        labels = [lbl for lbl in (self.label, other_label) if lbl]
        if len(labels) == 2 and labels[0] != labels[1]:
            return BusyInterval(merged.start, merged.end, f"{labels[0]}, {labels[1]}")
        return BusyInterval(merged.start, merged.end, labels[0] if labels else None)


@dataclass(frozen=True)
class FreeSlot(Interval):
    """A free span within working hours."""

    @property
    def is_morning(self) -> bool:
        """Starts before noon."""
        return self.start.time() < NOON


class Timed(Protocol):
    """Anything with a start and an end."""

    start: datetime
    end: datetime | None


@dataclass(frozen=True)
class Conflict:
    """A tick covered by more than one item."""

    tick_index: int
    time: datetime
    items: tuple

    def format(self) -> str:
        titles = ", ".join(getattr(i, "title", None) or getattr(i, "label", None) or "?" for i in self.items)
        return f"{self.time.strftime('%H:%M')} {titles}"


def filter_events_by_date(
    events: Iterable[Event],
    start_date: date,
    end_date: date | None = None,
) -> list[Event]:
    """
    Filter events to those within a date range.

    Pure function - no I/O.
    """
    end_date = end_date or start_date
    return [e for e in events if start_date <= e.start.date() <= end_date]


def sort_events_by_start(events: Iterable[Event]) -> list[Event]:
    """Sort events by start time."""
    return sorted(events, key=lambda e: e.start)


def infer_tz(events: Sequence[Event]) -> tzinfo | None:
    """Use the first event's timezone, otherwise naive."""
    return events[0].start.tzinfo if events else None


def build_busy_set(
    events: Iterable[Event],
    target_date: date,
    prefs: SchedulingPreferences,
    tz: tzinfo | None = None,
) -> list[BusyInterval]:
    """
    Collect the occupied time of a day.

    Timed events starting on target_date become busy intervals, padded by
    the meeting buffer. A lunch interval is added when enabled.

    Pure function - no I/O.

    Returns:
        Sorted, merged busy intervals
    """
    pad = max(prefs.buffer_between_meetings, timedelta(0))

    busy = [
        BusyInterval(e.start - pad, e.end + pad, e.title)
        for e in filter_events_by_date(events, target_date)
        if e.is_timed
    ]

    if prefs.lunch_break and prefs.lunch_duration > timedelta(0):
        lunch_start = datetime.combine(target_date, prefs.lunch_time, tzinfo=tz)
        busy.append(BusyInterval(lunch_start, lunch_start + prefs.lunch_duration, "Lunch"))

    return merge(busy)


def find_free_slots(
    busy: Iterable[Interval],
    target_date: date,
    work_start: time = time(9, 0),
    work_end: time = time(17, 0),
    min_duration: int = MIN_SLOT_MINUTES,
    prioritize_mornings: bool = False,
    tz: tzinfo | None = None,
) -> list[FreeSlot]:
    """
    Find free time slots between busy intervals during work hours.

    Pure function - no I/O.

    Args:
        busy: Busy intervals for the day (merged or not)
        target_date: Day to search
        work_start: Start of the working window
        work_end: End of the working window
        min_duration: Minimum slot duration in minutes
        prioritize_mornings: Order slots starting before noon first
        tz: Timezone of the working window, must match the busy intervals

    Returns:
        List of FreeSlots, empty if the working window is inverted
    """
    if work_start >= work_end:
        return []

    window = Interval(
        datetime.combine(target_date, work_start, tzinfo=tz),
        datetime.combine(target_date, work_end, tzinfo=tz),
    )
    gaps = subtract(window, busy, min_duration=timedelta(minutes=min_duration))
    slots = [FreeSlot(g.start, g.end) for g in gaps]

    return order_slots(slots, prioritize_mornings)


def order_slots(slots: Iterable[FreeSlot], prioritize_mornings: bool = False) -> list[FreeSlot]:
    """
    Order slots for allocation.

    Chronological, or with prioritize_mornings every slot starting before
    noon ahead of the rest (ties by start time).
    """
    if prioritize_mornings:
        return sorted(slots, key=lambda s: (not s.is_morning, s.start))
    return sorted(slots, key=lambda s: s.start)


def _epoch_for(dt: datetime) -> datetime:
    return _NAIVE_EPOCH if dt.tzinfo is None else _UTC_EPOCH


def find_conflicts(items: Iterable[Timed], tick: timedelta = TICK_WIDTH) -> list[Conflict]:
    """
    Find double-booked ticks.

    Every item is spread over the fixed-width ticks it touches; ticks
    touched by more than one item are reported. Detection only.

    Aware items are bucketed from the UTC epoch. Every current UTC offset is
    a multiple of 15 minutes, so ticks stay on the local quarter-hour grid
    for the default width.

    Pure function - no I/O.
    """
    buckets: dict[int, list] = {}
    zones: dict[int, tzinfo | None] = {}

    for item in items:
        end = item.end
        if end is None or getattr(item, "all_day", False) or end <= item.start:
            continue
        epoch = _epoch_for(item.start)
        first = (item.start - epoch) // tick
        last = -((epoch - end) // tick) - 1
        for index in range(first, last + 1):
            buckets.setdefault(index, []).append(item)
            zones.setdefault(index, item.start.tzinfo)

    conflicts = []
    for index in sorted(buckets):
        members = buckets[index]
        if len(members) < 2:
            continue
        tz = zones[index]
        at = _epoch_for(members[0].start) + index * tick
        if tz is not None:
            at = at.astimezone(tz)
        conflicts.append(Conflict(tick_index=index, time=at, items=tuple(members)))

    return conflicts
