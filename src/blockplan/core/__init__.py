"""Functional core - pure scheduling logic with no I/O."""

from .intervals import Interval, overlaps, merge, subtract
from .calendar import (
    Event,
    BusyInterval,
    FreeSlot,
    Conflict,
    build_busy_set,
    find_free_slots,
    find_conflicts,
    filter_events_by_date,
)
from .tasks import Priority, TaskRef, select_tasks, sort_by_priority
from .preferences import SchedulingPreferences, adjust_for_energy
from .blocks import (
    TimeBlock,
    DayPlan,
    PlanningMode,
    allocate_blocks,
    plan_day,
    plan_range,
    generate_time_blocks,
    date_range_for_mode,
)
from .recurrence import (
    Frequency,
    Recurrence,
    ScheduleRule,
    ScheduleType,
    next_run,
    upcoming_runs,
    time_blocking_rule,
)

__all__ = [
    # Intervals
    "Interval",
    "overlaps",
    "merge",
    "subtract",
    # Calendar
    "Event",
    "BusyInterval",
    "FreeSlot",
    "Conflict",
    "build_busy_set",
    "find_free_slots",
    "find_conflicts",
    "filter_events_by_date",
    # Tasks
    "Priority",
    "TaskRef",
    "select_tasks",
    "sort_by_priority",
    # Preferences
    "SchedulingPreferences",
    "adjust_for_energy",
    # Blocks
    "TimeBlock",
    "DayPlan",
    "PlanningMode",
    "allocate_blocks",
    "plan_day",
    "plan_range",
    "generate_time_blocks",
    "date_range_for_mode",
    # Recurrence
    "Frequency",
    "Recurrence",
    "ScheduleRule",
    "ScheduleType",
    "next_run",
    "upcoming_runs",
    "time_blocking_rule",
]
