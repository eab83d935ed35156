"""APScheduler integration - lets a host scheduler fire ScheduleRules.

The engine only answers "when next"; the host's scheduler does the firing.
"""

import logging
from datetime import datetime, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

from apscheduler.job import Job
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.base import BaseTrigger

from blockplan.core.recurrence import ScheduleRule, next_run

logger = logging.getLogger(__name__)


class ScheduleRuleTrigger(BaseTrigger):
    """
    APScheduler trigger driven by a ScheduleRule.

    Counts fires so a rule's end_count is honoured. Rules with naive
    datetimes are read as wall-clock time in the trigger's timezone.
    """

    def __init__(self, rule: ScheduleRule, timezone: tzinfo | str = "UTC", runs_completed: int = 0):
        self.rule = rule
        self.timezone = ZoneInfo(timezone) if isinstance(timezone, str) else timezone
        self.runs_completed = runs_completed

    def _is_naive_rule(self) -> bool:
        start = self.rule.start_date
        return isinstance(start, datetime) and start.tzinfo is None

    def get_next_fire_time(self, previous_fire_time: datetime | None, now: datetime) -> datetime | None:
        if previous_fire_time is not None:
            self.runs_completed += 1

        if self._is_naive_rule():
            local_now = now.astimezone(self.timezone).replace(tzinfo=None)
            run = next_run(self.rule, local_now, runs_completed=self.runs_completed)
            return run.replace(tzinfo=self.timezone) if run else None

        return next_run(self.rule, now.astimezone(self.timezone), runs_completed=self.runs_completed)

    def __str__(self) -> str:
        return f"schedule_rule[{self.rule.id or self.rule.name}]"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} (rule={self.rule.id or self.rule.name!r}, runs={self.runs_completed})>"


def add_rule_job(
    scheduler: BaseScheduler,
    rule: ScheduleRule,
    func: Callable,
    args: list | None = None,
    runs_completed: int = 0,
) -> Job | None:
    """Register a job for a rule. Rules with no upcoming run are skipped."""
    trigger = ScheduleRuleTrigger(rule, timezone=scheduler.timezone, runs_completed=runs_completed)
    first = trigger.get_next_fire_time(None, datetime.now(trigger.timezone))
    if first is None:
        logger.info(f"Schedule {rule.id or rule.name!r} has no upcoming run, not scheduling")
        return None

    job = scheduler.add_job(func, trigger, args=args or [], id=rule.id or None, name=rule.name or None)
    logger.info(f"Scheduled {rule.name or rule.id!r}, first run at {first.isoformat()}")
    return job
