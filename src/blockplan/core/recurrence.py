"""Next-run calculation for automation schedules - no I/O dependencies.

A schedule's next run is never stored: it is derived from the rule and the
current instant on every query, so it stays correct across restarts.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from .preferences import parse_time_of_day

logger = logging.getLogger(__name__)

TIME_BLOCKING_WORKFLOW = "time-blocking"
DAYS_PER_WEEK = 7


class ScheduleType(Enum):
    ONCE = "once"
    RECURRING = "recurring"


class Frequency(Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Recurrence:
    """How a recurring schedule repeats."""

    frequency: Frequency
    interval: int = 1
    days_of_week: tuple[int, ...] | None = None  # 0 = Sunday .. 6 = Saturday
    day_of_month: int | None = None

    def problem(self) -> str | None:
        """Why this recurrence cannot produce runs, or None if it can."""
        if self.interval < 1:
            return f"interval must be at least 1, got {self.interval}"
        if self.days_of_week is not None:
            if not self.days_of_week:
                return "days_of_week is empty"
            bad = [d for d in self.days_of_week if not 0 <= d <= 6]
            if bad:
                return f"days_of_week outside 0..6: {bad}"
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            return f"day_of_month outside 1..31: {self.day_of_month}"
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Recurrence":
        days = data.get("daysOfWeek")
        return cls(
            frequency=Frequency(data["frequency"]),
            interval=int(data.get("interval", 1)),
            days_of_week=tuple(int(d) for d in days) if days else None,
            day_of_month=int(data["dayOfMonth"]) if data.get("dayOfMonth") is not None else None,
        )


@dataclass(frozen=True)
class ScheduleRule:
    """A one-time or recurring automation schedule."""

    type: ScheduleType
    start_date: date | datetime
    time: str | None = None
    end_date: date | datetime | None = None
    end_count: int | None = None
    recurrence: Recurrence | None = None
    enabled: bool = True
    id: str = ""
    name: str = ""
    workflow_id: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleRule":
        """Create a rule from an automation-store record."""
        recurrence = data.get("recurrence")
        return cls(
            type=ScheduleType(data.get("type", "once")),
            start_date=_parse_date(data["startDate"]),
            time=data.get("time") or None,
            end_date=_parse_date(data["endDate"]) if data.get("endDate") else None,
            end_count=int(data["endCount"]) if data.get("endCount") is not None else None,
            recurrence=Recurrence.from_dict(recurrence) if recurrence else None,
            enabled=bool(data.get("enabled", True)),
            id=str(data.get("id", "")),
            name=data.get("name", "") or "",
            workflow_id=data.get("workflowId", "") or "",
            description=data.get("description", "") or "",
        )


def _parse_date(value) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).replace("Z", "+00:00")
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text)


def _as_datetime(value: date | datetime, now: datetime, end_of_day: bool = False) -> datetime:
    """Date-only values take now's timezone."""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max if end_of_day else time.min, tzinfo=now.tzinfo)


def js_weekday(dt: date) -> int:
    """Weekday with Sunday as 0."""
    return (dt.weekday() + 1) % DAYS_PER_WEEK


def first_run(rule: ScheduleRule, now: datetime) -> datetime:
    """The rule's start instant with its time of day applied."""
    start = _as_datetime(rule.start_date, now)
    if rule.time:
        at = parse_time_of_day(rule.time)
        start = start.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    return start


def _fast_forward(anchor: datetime, step: timedelta, now: datetime) -> datetime:
    """First anchor + k*step (k >= 1) strictly after now."""
    jumps = (now - anchor) // step + 1
    return anchor + jumps * step


def _next_monthly(anchor: datetime, recurrence: Recurrence, now: datetime) -> datetime:
    # Offsets are taken from the anchor so a clamped month does not shift later months.
    def nth(k: int) -> datetime:
        delta = relativedelta(months=k * recurrence.interval)
        if recurrence.day_of_month is not None:
            # relativedelta clamps day= to the month's length
            delta += relativedelta(day=recurrence.day_of_month)
        return anchor + delta

    months_behind = (now.year - anchor.year) * 12 + (now.month - anchor.month)
    k = max(1, months_behind // recurrence.interval)
    candidate = nth(k)
    while candidate <= now:
        k += 1
        candidate = nth(k)
    return candidate


def _next_weekly_on_days(anchor: datetime, recurrence: Recurrence, now: datetime) -> datetime:
    """
    First listed weekday strictly after now in an active week.

    Weeks start on Sunday; the anchor's week is active and so is every
    interval-th week after it.
    """
    step = timedelta(weeks=recurrence.interval)
    week_start = anchor - timedelta(days=js_weekday(anchor))
    if now >= week_start + step:
        week_start = week_start + ((now - week_start) // step) * step

    days = set(recurrence.days_of_week)
    while True:
        for offset in range(DAYS_PER_WEEK):
            candidate = week_start + timedelta(days=offset)
            if js_weekday(candidate) in days and candidate > now:
                return candidate
        week_start += step


def next_run(
    rule: ScheduleRule,
    now: datetime,
    runs_completed: int | None = None,
) -> datetime | None:
    """
    Next instant strictly after now at which the rule should fire.

    Returns None when the rule is disabled, exhausted or malformed; this
    never raises for a bad rule so previews can call it freely.

    Args:
        rule: Schedule definition
        now: Reference instant
        runs_completed: Runs already fired, tracked by the caller. end_count
            is only enforced when this is given.

    Returns:
        The next run, or None
    """
    if rule is None or now is None:
        raise TypeError("next_run requires a rule and now")

    if not rule.enabled:
        return None

    if rule.end_count is not None and runs_completed is not None and runs_completed >= rule.end_count:
        return None

    try:
        candidate = first_run(rule, now)
    except ValueError as e:
        logger.debug(f"Schedule {rule.id or rule.name!r} has an invalid time: {e}")
        return None

    if rule.type is ScheduleType.ONCE:
        return candidate if candidate > now else None

    recurrence = rule.recurrence
    if recurrence is None:
        logger.debug(f"Recurring schedule {rule.id or rule.name!r} has no recurrence")
        return None

    problem = recurrence.problem()
    if problem:
        logger.debug(f"Schedule {rule.id or rule.name!r} rejected: {problem}")
        return None

    # A start still ahead of now is the next run as is.
    if candidate <= now:
        match recurrence.frequency:
            case Frequency.HOURLY:
                candidate = _fast_forward(candidate, timedelta(hours=recurrence.interval), now)
            case Frequency.DAILY:
                candidate = _fast_forward(candidate, timedelta(days=recurrence.interval), now)
            case Frequency.WEEKLY if recurrence.days_of_week:
                candidate = _next_weekly_on_days(candidate, recurrence, now)
            case Frequency.WEEKLY:
                candidate = _fast_forward(candidate, timedelta(weeks=recurrence.interval), now)
            case Frequency.MONTHLY:
                candidate = _next_monthly(candidate, recurrence, now)

    if rule.end_date is not None and candidate > _as_datetime(rule.end_date, now, end_of_day=True):
        return None

    return candidate


def upcoming_runs(
    rule: ScheduleRule,
    now: datetime,
    count: int,
    runs_completed: int = 0,
) -> list[datetime]:
    """Preview the next `count` runs, stopping early when the rule is exhausted."""
    runs = []
    cursor = now
    while len(runs) < count:
        run = next_run(rule, cursor, runs_completed=runs_completed + len(runs))
        if run is None:
            break
        runs.append(run)
        cursor = run
    return runs


def time_blocking_rule(
    frequency: Frequency,
    interval: int,
    start_date: date | datetime,
    days_of_week: list[int] | None = None,
) -> ScheduleRule:
    """The recurring schedule that re-runs time blocking."""
    return ScheduleRule(
        type=ScheduleType.RECURRING,
        start_date=start_date,
        recurrence=Recurrence(
            frequency=frequency,
            interval=interval,
            days_of_week=tuple(days_of_week) if days_of_week else None,
        ),
        name="Regular Time Blocking",
        workflow_id=TIME_BLOCKING_WORKFLOW,
        description="Automatically create time blocks for tasks",
    )
