"""Focus-block allocation and day planning - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Sequence

from .calendar import (
    BusyInterval,
    Conflict,
    Event,
    FreeSlot,
    build_busy_set,
    filter_events_by_date,
    find_conflicts,
    find_free_slots,
    infer_tz,
)
from .intervals import Interval
from .preferences import SchedulingPreferences, adjust_for_energy
from .tasks import Priority, TaskRef, filter_due_between, select_tasks

DEEP_WORK = "deep-work"

_BLOCK_NAMESPACE = uuid.UUID("6f1c2a8e-4b7d-4f43-9a51-2d9c3e0b7a15")


@dataclass(frozen=True)
class TimeBlock:
    """A generated focus block for one task."""

    id: str
    title: str
    interval: Interval
    task_ids: tuple[str, ...]
    description: str = ""
    kind: str = DEEP_WORK

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    def format(self) -> str:
        return f"{self.interval.format()} {self.title}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "type": self.kind,
            "description": self.description,
            "taskIds": list(self.task_ids),
        }


def block_id(start: datetime, task_ids: Sequence[str]) -> str:
    """Stable id: the same block placed twice gets the same id."""
    return str(uuid.uuid5(_BLOCK_NAMESPACE, f"{start.isoformat()}|{','.join(task_ids)}"))


def make_block(interval: Interval, tasks: Sequence[TaskRef]) -> TimeBlock:
    titles = ", ".join(t.display_title for t in tasks)
    task_ids = tuple(t.id for t in tasks)
    return TimeBlock(
        id=block_id(interval.start, task_ids),
        title=f"Deep Work: {titles}",
        interval=interval,
        task_ids=task_ids,
        description=f"Focus time for: {titles}",
    )


def allocate_blocks(
    slots: Iterable[Interval],
    tasks: Sequence[TaskRef],
    focus_duration: timedelta,
    break_duration: timedelta,
) -> list[TimeBlock]:
    """
    Greedily place one focus block per task into the free slots.

    Slots are used in the order given. Within a slot, blocks are packed from
    the start with a break after each one; a slot is left as soon as the
    break would run past its end. Tasks keep their order and are never split.

    Pure function - no I/O.

    Returns:
        Blocks in placement order, possibly empty
    """
    if focus_duration <= timedelta(0) or break_duration <= timedelta(0):
        return []

    blocks: list[TimeBlock] = []
    remaining = iter(tasks)
    task = next(remaining, None)

    for slot in slots:
        if task is None:
            break
        cursor = slot.start
        while task is not None and cursor + focus_duration <= slot.end:
            block_end = cursor + focus_duration
            blocks.append(make_block(Interval(cursor, block_end), [task]))
            task = next(remaining, None)
            if block_end + break_duration > slot.end:
                break
            cursor = block_end + break_duration

    return blocks


@dataclass(frozen=True)
class DayPlan:
    """Everything computed for one day."""

    date: date
    preferences: SchedulingPreferences
    busy: list[BusyInterval] = field(default_factory=list)
    free_slots: list[FreeSlot] = field(default_factory=list)
    tasks: list[TaskRef] = field(default_factory=list)
    blocks: list[TimeBlock] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def unscheduled(self) -> list[TaskRef]:
        """Selected tasks that did not get a block."""
        placed = {tid for b in self.blocks for tid in b.task_ids}
        return [t for t in self.tasks if t.id not in placed]


def plan_day(
    target_date: date,
    events: Sequence[Event],
    tasks: Iterable[TaskRef],
    prefs: SchedulingPreferences,
    now: datetime,
    task_ids: Iterable[str] | None = None,
    tz: tzinfo | None = None,
) -> DayPlan:
    """
    Run the full scheduling pipeline for one day.

    Pure function - no I/O. Invalid preferences yield a plan with no free
    slots and no blocks rather than an error.
    """
    if target_date is None or prefs is None or now is None:
        raise TypeError("plan_day requires target_date, prefs and now")

    day_events = sort_events_by_day(events, target_date)
    tz = tz if tz is not None else infer_tz(day_events)
    conflicts = find_conflicts(day_events)

    if prefs.respect_energy_levels:
        prefs = adjust_for_energy(prefs, prefs.energy_level)

    if not prefs.is_valid():
        return DayPlan(date=target_date, preferences=prefs, conflicts=conflicts)

    busy = build_busy_set(day_events, target_date, prefs, tz=tz)
    free_slots = find_free_slots(
        busy,
        target_date,
        work_start=prefs.work_start,
        work_end=prefs.work_end,
        prioritize_mornings=prefs.prioritize_mornings,
        tz=tz,
    )

    min_priority = None if prefs.include_low_priority else Priority.MEDIUM
    selected = select_tasks(tasks, now, task_ids=task_ids, min_priority=min_priority)
    blocks = allocate_blocks(free_slots, selected, prefs.focus_block_duration, prefs.break_duration)

    return DayPlan(
        date=target_date,
        preferences=prefs,
        busy=busy,
        free_slots=free_slots,
        tasks=selected,
        blocks=blocks,
        conflicts=conflicts,
    )


def sort_events_by_day(events: Iterable[Event], target_date: date) -> list[Event]:
    return sorted(filter_events_by_date(events, target_date), key=lambda e: e.start)


def generate_time_blocks(
    target_date: date,
    events: Sequence[Event],
    tasks: Iterable[TaskRef],
    prefs: SchedulingPreferences,
    now: datetime,
    task_ids: Iterable[str] | None = None,
    tz: tzinfo | None = None,
) -> list[TimeBlock]:
    """Focus blocks for one day."""
    return plan_day(target_date, events, tasks, prefs, now, task_ids=task_ids, tz=tz).blocks


def plan_range(
    start_date: date,
    end_date: date,
    events: Sequence[Event],
    tasks: Iterable[TaskRef],
    prefs: SchedulingPreferences,
    now: datetime,
    tz: tzinfo | None = None,
) -> list[DayPlan]:
    """
    Plan every day in [start_date, end_date] that has tasks due.

    Each day schedules only the tasks due on it. Days are computed
    independently of each other.
    """
    due = filter_due_between(tasks, start_date, end_date)
    if not due:
        return []

    plans = []
    day = start_date
    while day <= end_date:
        ids = [t.id for t in due if t.due_on(day)]
        if ids:
            plans.append(plan_day(day, events, due, prefs, now, task_ids=ids, tz=tz))
        day += timedelta(days=1)
    return plans


class PlanningMode(Enum):
    """How far ahead a planning run reaches."""

    DAILY = "daily"
    WEEKLY = "weekly"
    FOCUS = "focus"


def date_range_for_mode(mode: PlanningMode, selected: date) -> tuple[date, date]:
    """
    Date range covered by a planning mode.

    daily: the selected day. weekly: Monday to Sunday of its week.
    focus: the selected day and the next.
    """
    match mode:
        case PlanningMode.WEEKLY:
            monday = selected - timedelta(days=selected.weekday())
            return monday, monday + timedelta(days=6)
        case PlanningMode.FOCUS:
            return selected, selected + timedelta(days=1)
        case _:
            return selected, selected
