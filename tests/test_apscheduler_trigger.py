"""Tests for the APScheduler trigger adapter."""

from dataclasses import replace
from datetime import date, datetime, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from blockplan.adapters.apscheduler_trigger import ScheduleRuleTrigger, add_rule_job
from blockplan.core.recurrence import Frequency, Recurrence, ScheduleRule, ScheduleType

BERLIN = ZoneInfo("Europe/Berlin")


@pytest.fixture
def daily_rule():
    return ScheduleRule(
        type=ScheduleType.RECURRING,
        start_date=datetime(2025, 1, 13),
        time="09:00",
        recurrence=Recurrence(Frequency.DAILY),
        id="daily",
        name="Daily blocking",
    )


@pytest.fixture
def scheduler():
    mock = MagicMock()
    mock.timezone = BERLIN
    return mock


class TestScheduleRuleTrigger:
    def test_naive_rule_read_in_trigger_zone(self, daily_rule):
        trigger = ScheduleRuleTrigger(daily_rule, timezone="Europe/Berlin")
        now = datetime(2025, 1, 14, 12, tzinfo=timezone.utc)
        assert trigger.get_next_fire_time(None, now) == datetime(2025, 1, 15, 9, tzinfo=BERLIN)

    def test_aware_rule(self):
        rule = ScheduleRule(
            type=ScheduleType.ONCE,
            start_date=datetime(2025, 1, 20, 8, tzinfo=timezone.utc),
        )
        trigger = ScheduleRuleTrigger(rule, timezone=BERLIN)
        fire = trigger.get_next_fire_time(None, datetime(2025, 1, 14, tzinfo=timezone.utc))
        assert fire == datetime(2025, 1, 20, 8, tzinfo=timezone.utc)

    def test_date_only_rule_uses_trigger_zone(self):
        rule = ScheduleRule(type=ScheduleType.ONCE, start_date=date(2025, 1, 20), time="07:00")
        trigger = ScheduleRuleTrigger(rule, timezone=BERLIN)
        fire = trigger.get_next_fire_time(None, datetime(2025, 1, 14, tzinfo=timezone.utc))
        assert fire == datetime(2025, 1, 20, 7, tzinfo=BERLIN)

    def test_counts_fires_against_end_count(self, daily_rule):
        rule = replace(daily_rule, end_count=2)
        trigger = ScheduleRuleTrigger(rule, timezone=BERLIN)
        now = datetime(2025, 1, 14, 12, tzinfo=BERLIN)

        first = trigger.get_next_fire_time(None, now)
        second = trigger.get_next_fire_time(first, first)
        third = trigger.get_next_fire_time(second, second)

        assert first == datetime(2025, 1, 15, 9, tzinfo=BERLIN)
        assert second == datetime(2025, 1, 16, 9, tzinfo=BERLIN)
        assert third is None
        assert trigger.runs_completed == 2

    def test_str(self, daily_rule):
        assert str(ScheduleRuleTrigger(daily_rule)) == "schedule_rule[daily]"


class TestAddRuleJob:
    def test_schedules_rule_with_upcoming_run(self, scheduler):
        rule = ScheduleRule(type=ScheduleType.ONCE, start_date=date(2099, 1, 1), id="later", name="Later")
        func = MagicMock()

        job = add_rule_job(scheduler, rule, func, args=["x"])

        assert job is scheduler.add_job.return_value
        call = scheduler.add_job.call_args
        assert call.args[0] is func
        assert isinstance(call.args[1], ScheduleRuleTrigger)
        assert call.kwargs["args"] == ["x"]
        assert call.kwargs["id"] == "later"
        assert call.kwargs["name"] == "Later"

    def test_skips_exhausted_rule(self, scheduler):
        rule = ScheduleRule(type=ScheduleType.ONCE, start_date=date(2000, 1, 1))
        assert add_rule_job(scheduler, rule, MagicMock()) is None
        scheduler.add_job.assert_not_called()

    def test_skips_disabled_rule(self, scheduler, daily_rule):
        rule = replace(daily_rule, enabled=False)
        assert add_rule_job(scheduler, rule, MagicMock()) is None
        scheduler.add_job.assert_not_called()
