"""Pure interval algebra - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, TypeVar


@dataclass(frozen=True)
class Interval:
    """A closed-open time span [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise TypeError("Interval requires both start and end")
        if self.start >= self.end:
            raise ValueError(f"Interval start must precede end: {self.start} >= {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() / 60)

    def format(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} ({self.duration_minutes()} min)"

    def contains(self, dt: datetime) -> bool:
        """Check if a datetime falls within this interval."""
        return self.start <= dt < self.end

    def covers(self, other: "Interval") -> bool:
        """Check if another interval lies entirely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def shift(self, delta: timedelta) -> "Interval":
        """Return a copy moved by delta."""
        return replace(self, start=self.start + delta, end=self.end + delta)

    def union(self, other: "Interval") -> "Interval":
        """Extend this interval to also cover an adjacent or overlapping one."""
        return replace(self, start=min(self.start, other.start), end=max(self.end, other.end))


IntervalT = TypeVar("IntervalT", bound=Interval)


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the two spans share any instant. Touching spans do not overlap."""
    return a.start < b.end and b.start < a.end


def merge(intervals: Iterable[IntervalT]) -> list[IntervalT]:
    """
    Merge intervals into a sorted, disjoint list.

    Touching intervals ([9, 10) and [10, 11)) are joined. Idempotent:
    merge(merge(xs)) == merge(xs).
    Pure function - no I/O.
    """
    merged: list[IntervalT] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            merged[-1] = merged[-1].union(interval)
        else:
            merged.append(interval)
    return merged


def subtract(
    window: Interval,
    busy: Iterable[Interval],
    min_duration: timedelta = timedelta(0),
) -> list[Interval]:
    """
    Free gaps of a window once the busy intervals are taken out.

    Busy intervals are clipped to the window before sweeping, so the gaps
    and the clipped busy set tile the window exactly (with min_duration 0).

    Pure function - no I/O.

    Args:
        window: Span to search
        busy: Occupied intervals, any order, may overlap
        min_duration: Gaps shorter than this are dropped

    Returns:
        Gaps in chronological order
    """
    clipped = [
        Interval(max(b.start, window.start), min(b.end, window.end))
        for b in busy
        if b.end > window.start and b.start < window.end
    ]

    free = []
    cursor = window.start

    for b in merge(clipped):
        if b.start > cursor and b.start - cursor >= min_duration:
            free.append(Interval(cursor, b.start))
        cursor = max(cursor, b.end)

    if cursor < window.end and window.end - cursor >= min_duration:
        free.append(Interval(cursor, window.end))

    return free
