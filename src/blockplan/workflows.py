"""Shared workflow layer for the CLI.

Each function loads snapshots through the adapters, runs the functional
core, and returns plain results. Nothing is written back.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from .adapters.json_snapshot import JsonCalendarSource, JsonScheduleSource, JsonTaskSource
from .config import Config
from .core.blocks import DayPlan, PlanningMode, date_range_for_mode, plan_day, plan_range
from .core.calendar import Conflict, Event, filter_events_by_date, find_conflicts, sort_events_by_start
from .core.recurrence import ScheduleRule, upcoming_runs
from .core.tasks import TaskRef
from .ports import CalendarSource, ScheduleSource, TaskSource

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def get_task_source(config: Config) -> TaskSource:
    return JsonTaskSource(config.data_path("tasks"))


def get_calendar_source(config: Config) -> CalendarSource:
    return JsonCalendarSource(config.data_path("events"))


def get_schedule_source(config: Config) -> ScheduleSource:
    return JsonScheduleSource(config.data_path("schedules"))


def get_timezone(config: Config) -> tzinfo | None:
    """Configured timezone, or None for naive local time."""
    if not config.timezone:
        return None
    return ZoneInfo(config.timezone)


def current_time(config: Config) -> datetime:
    tz = get_timezone(config)
    return datetime.now(tz) if tz else datetime.now()


def _localize(dt: datetime | None, tz: tzinfo | None) -> datetime | None:
    """
    Bring a snapshot time onto the same footing as now.

    With a zone: naive times are wall-clock time there, aware times are
    converted into it. Without one: aware times become naive local time.
    """
    if dt is None:
        return None
    if tz is None:
        return dt.astimezone().replace(tzinfo=None) if dt.tzinfo is not None else dt
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def localize_events(events: list[Event], tz: tzinfo | None) -> list[Event]:
    """Events with times comparable to current_time(config)."""
    return [replace(e, start=_localize(e.start, tz), end=_localize(e.end, tz)) for e in events]


def localize_tasks(tasks: list[TaskRef], tz: tzinfo | None) -> list[TaskRef]:
    return [replace(t, due_date=_localize(t.due_date, tz)) for t in tasks]


def localize_rule(rule: ScheduleRule, tz: tzinfo | None) -> ScheduleRule:
    start, end = rule.start_date, rule.end_date
    if isinstance(start, datetime):
        start = _localize(start, tz)
    if isinstance(end, datetime):
        end = _localize(end, tz)
    return replace(rule, start_date=start, end_date=end)


def plan_for_date(
    config: Config,
    target_date: date,
    now: datetime | None = None,
    task_ids: list[str] | None = None,
    energy_level: int | None = None,
) -> DayPlan:
    """Plan focus blocks for one day from the configured snapshots."""
    now = now or current_time(config)
    prefs = config.to_preferences()
    if energy_level is not None:
        prefs = replace(prefs, energy_level=energy_level)

    tz = get_timezone(config)
    # One day either side: a snapshot date may fall on another day locally.
    events = get_calendar_source(config).fetch_range(target_date - ONE_DAY, target_date + ONE_DAY)
    events = localize_events(events, tz)
    tasks = localize_tasks(get_task_source(config).fetch_all(), tz)
    logger.debug(f"Planning {target_date}: {len(events)} events, {len(tasks)} tasks")

    return plan_day(
        target_date,
        events,
        tasks,
        prefs,
        now,
        task_ids=task_ids or None,
        tz=tz,
    )


def plan_for_mode(
    config: Config,
    mode: PlanningMode,
    selected: date,
    now: datetime | None = None,
) -> list[DayPlan]:
    """Plan every day of a planning mode's range that has tasks due."""
    now = now or current_time(config)
    start_date, end_date = date_range_for_mode(mode, selected)

    tz = get_timezone(config)
    events = get_calendar_source(config).fetch_range(start_date - ONE_DAY, end_date + ONE_DAY)
    events = localize_events(events, tz)
    tasks = localize_tasks(get_task_source(config).fetch_all(), tz)
    logger.debug(f"Planning {start_date}..{end_date} ({mode.value}): {len(events)} events, {len(tasks)} tasks")

    return plan_range(
        start_date,
        end_date,
        events,
        tasks,
        config.to_preferences(),
        now,
        tz=tz,
    )


def conflicts_for_date(config: Config, target_date: date) -> list[Conflict]:
    """Double-booked ticks among a day's events."""
    events = get_calendar_source(config).fetch_range(target_date - ONE_DAY, target_date + ONE_DAY)
    events = localize_events(events, get_timezone(config))
    return find_conflicts(sort_events_by_start(filter_events_by_date(events, target_date)))


def next_runs(
    config: Config,
    now: datetime | None = None,
    count: int = 1,
    rule_id: str | None = None,
) -> list[tuple[ScheduleRule, list[datetime]]]:
    """Upcoming runs for each configured schedule (optionally just one)."""
    now = now or current_time(config)
    tz = get_timezone(config)
    rules = [localize_rule(r, tz) for r in get_schedule_source(config).fetch_all()]
    if rule_id:
        rules = [r for r in rules if r.id == rule_id]

    return [(rule, upcoming_runs(rule, now, max(count, 1))) for rule in rules]

