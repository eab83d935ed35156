"""Tests for focus-block allocation and day planning."""

from datetime import date, datetime, time, timedelta

import pytest

from blockplan.core.blocks import (
    PlanningMode,
    TimeBlock,
    allocate_blocks,
    block_id,
    date_range_for_mode,
    generate_time_blocks,
    plan_day,
    plan_range,
)
from blockplan.core.calendar import Event, FreeSlot
from blockplan.core.intervals import Interval, overlaps
from blockplan.core.preferences import SchedulingPreferences
from blockplan.core.tasks import Priority, TaskRef


# Fixtures
@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def at(today):
    def _at(hour: int, minute: int = 0, days: int = 0) -> datetime:
        return datetime.combine(today + timedelta(days=days), time(hour, minute))
    return _at


@pytest.fixture
def now(at):
    return at(7)


@pytest.fixture
def make_tasks(now):
    """Factory for n medium-priority tasks due later today."""
    def _make(n: int, priority: Priority = Priority.MEDIUM) -> list[TaskRef]:
        return [
            TaskRef(id=f"t{i}", title=f"Task {i}", priority=priority, due_date=now + timedelta(hours=i + 1))
            for i in range(n)
        ]
    return _make


@pytest.fixture
def fixed_prefs():
    """Preferences without the energy adjustment."""
    return SchedulingPreferences(respect_energy_levels=False)


FOCUS = timedelta(minutes=90)
BREAK = timedelta(minutes=15)


class TestAllocateBlocks:
    def test_single_block_in_two_hour_slot(self, at, make_tasks):
        blocks = allocate_blocks([FreeSlot(at(9), at(11))], make_tasks(1), FOCUS, BREAK)
        assert len(blocks) == 1
        assert blocks[0].interval == Interval(at(9), at(10, 30))
        assert blocks[0].task_ids == ("t0",)

    def test_break_past_slot_end_leaves_slot(self, at, make_tasks):
        blocks = allocate_blocks(
            [FreeSlot(at(9), at(11)), FreeSlot(at(13), at(17))], make_tasks(2), FOCUS, BREAK
        )
        assert [b.start for b in blocks] == [at(9), at(13)]

    def test_packs_blocks_with_breaks(self, at, make_tasks):
        blocks = allocate_blocks([FreeSlot(at(9), at(17))], make_tasks(5), FOCUS, BREAK)
        assert [b.start for b in blocks] == [at(9), at(10, 45), at(12, 30), at(14, 15)]

    def test_block_may_end_exactly_at_slot_end(self, at, make_tasks):
        blocks = allocate_blocks([FreeSlot(at(9), at(10, 30))], make_tasks(1), FOCUS, BREAK)
        assert blocks[0].end == at(10, 30)

    def test_slot_too_short_skipped(self, at, make_tasks):
        blocks = allocate_blocks(
            [FreeSlot(at(9), at(10)), FreeSlot(at(11), at(13))], make_tasks(1), FOCUS, BREAK
        )
        assert [b.start for b in blocks] == [at(11)]

    def test_tasks_continue_across_slots(self, at, make_tasks):
        slots = [FreeSlot(at(9), at(10, 30)), FreeSlot(at(13), at(14, 30))]
        blocks = allocate_blocks(slots, make_tasks(3), FOCUS, BREAK)
        assert [b.task_ids for b in blocks] == [("t0",), ("t1",)]

    def test_task_order_preserved(self, at, make_tasks):
        tasks = list(reversed(make_tasks(3)))
        blocks = allocate_blocks([FreeSlot(at(8), at(18))], tasks, FOCUS, BREAK)
        assert [b.task_ids[0] for b in blocks] == ["t2", "t1", "t0"]

    def test_no_tasks(self, at):
        assert allocate_blocks([FreeSlot(at(9), at(17))], [], FOCUS, BREAK) == []

    def test_no_slots(self, make_tasks):
        assert allocate_blocks([], make_tasks(3), FOCUS, BREAK) == []

    @pytest.mark.parametrize("focus,brk", [(timedelta(0), BREAK), (FOCUS, timedelta(0)), (-FOCUS, BREAK)])
    def test_non_positive_durations_yield_nothing(self, at, make_tasks, focus, brk):
        assert allocate_blocks([FreeSlot(at(9), at(17))], make_tasks(3), focus, brk) == []

    def test_blocks_inside_slots_and_disjoint(self, at, make_tasks):
        slots = [FreeSlot(at(8), at(9, 10)), FreeSlot(at(9, 40), at(12)), FreeSlot(at(13), at(18))]
        focus, brk = timedelta(minutes=25), timedelta(minutes=5)
        blocks = allocate_blocks(slots, make_tasks(20), focus, brk)

        assert blocks
        for block in blocks:
            assert block.interval.duration == focus
            assert any(slot.covers(block.interval) for slot in slots)
        for a, b in zip(blocks, blocks[1:]):
            assert not overlaps(a.interval, b.interval)
        assert len({t for b in blocks for t in b.task_ids}) == len(blocks)

    def test_block_content(self, at):
        task = TaskRef(id="x", title="Write docs")
        block = allocate_blocks([FreeSlot(at(9), at(11))], [task], FOCUS, BREAK)[0]
        assert block.title == "Deep Work: Write docs"
        assert block.description == "Focus time for: Write docs"
        assert block.kind == "deep-work"

    def test_ids_deterministic(self, at, make_tasks):
        first = allocate_blocks([FreeSlot(at(9), at(17))], make_tasks(2), FOCUS, BREAK)
        second = allocate_blocks([FreeSlot(at(9), at(17))], make_tasks(2), FOCUS, BREAK)
        assert [b.id for b in first] == [b.id for b in second]
        assert first[0].id != first[1].id


class TestTimeBlock:
    def test_to_dict(self, at):
        block = TimeBlock(
            id=block_id(at(9), ["a"]),
            title="Deep Work: A",
            interval=Interval(at(9), at(10)),
            task_ids=("a",),
        )
        data = block.to_dict()
        assert data["start"] == "2025-01-15T09:00:00"
        assert data["taskIds"] == ["a"]
        assert data["type"] == "deep-work"

    def test_format(self, at):
        block = TimeBlock(id="1", title="Deep Work: A", interval=Interval(at(9), at(10)), task_ids=("a",))
        assert block.format() == "09:00-10:00 (60 min) Deep Work: A"


class TestPlanDay:
    def test_blocks_fill_around_events(self, today, at, now, make_tasks, fixed_prefs):
        events = [Event("Standup", at(10), at(11))]
        plan = plan_day(today, events, make_tasks(3), fixed_prefs, now)

        assert plan.free_slots == [FreeSlot(at(9), at(10)), FreeSlot(at(11), at(17))]
        assert [b.start for b in plan.blocks] == [at(11), at(12, 45), at(14, 30)]
        for block in plan.blocks:
            assert not any(overlaps(block.interval, b) for b in plan.busy)

    def test_energy_adjustment_applied(self, today, at, now, make_tasks):
        prefs = SchedulingPreferences(energy_level=20)
        plan = plan_day(today, [], make_tasks(1), prefs, now)
        assert plan.preferences.focus_block_duration == timedelta(minutes=25)
        assert plan.blocks[0].end == at(9, 25)

    def test_energy_adjustment_can_be_disabled(self, today, now, make_tasks):
        prefs = SchedulingPreferences(energy_level=20, respect_energy_levels=False)
        plan = plan_day(today, [], make_tasks(1), prefs, now)
        assert plan.blocks[0].interval.duration == timedelta(minutes=90)

    def test_low_priority_excluded_when_configured(self, today, now, make_tasks):
        prefs = SchedulingPreferences(include_low_priority=False, respect_energy_levels=False)
        plan = plan_day(today, [], make_tasks(2, Priority.LOW), prefs, now)
        assert plan.blocks == []
        assert plan.tasks == []

    def test_explicit_task_ids(self, today, now, make_tasks, fixed_prefs):
        plan = plan_day(today, [], make_tasks(3), fixed_prefs, now, task_ids=["t2"])
        assert [b.task_ids for b in plan.blocks] == [("t2",)]

    def test_invalid_prefs_give_empty_plan(self, today, at, now, make_tasks):
        prefs = SchedulingPreferences(work_start=time(17), work_end=time(9), respect_energy_levels=False)
        events = [Event("A", at(9), at(10)), Event("B", at(9, 30), at(10, 30))]
        plan = plan_day(today, events, make_tasks(2), prefs, now)
        assert plan.blocks == []
        assert plan.free_slots == []
        assert plan.conflicts

    def test_unscheduled_tasks(self, today, now, make_tasks, fixed_prefs):
        plan = plan_day(today, [], make_tasks(6), fixed_prefs, now)
        assert len(plan.blocks) == 4
        assert [t.id for t in plan.unscheduled] == ["t4", "t5"]

    def test_events_on_other_days_ignored(self, today, at, now, make_tasks, fixed_prefs):
        events = [Event("Tomorrow", at(9, days=1), at(17, days=1))]
        plan = plan_day(today, events, make_tasks(1), fixed_prefs, now)
        assert plan.blocks[0].start == at(9)

    def test_lunch_respected(self, today, at, now, make_tasks):
        prefs = SchedulingPreferences(lunch_break=True, respect_energy_levels=False)
        plan = plan_day(today, [], make_tasks(4), prefs, now)
        lunch = Interval(at(12), at(13))
        assert all(not overlaps(b.interval, lunch) for b in plan.blocks)

    def test_requires_now(self, today, fixed_prefs):
        with pytest.raises(TypeError):
            plan_day(today, [], [], fixed_prefs, None)

    def test_generate_time_blocks_matches_plan(self, today, now, make_tasks, fixed_prefs):
        tasks = make_tasks(2)
        assert generate_time_blocks(today, [], tasks, fixed_prefs, now) == plan_day(
            today, [], tasks, fixed_prefs, now
        ).blocks


class TestPlanRange:
    def test_only_days_with_tasks_due(self, today, at, now, fixed_prefs):
        tasks = [
            TaskRef(id="a", due_date=at(17)),
            TaskRef(id="b", due_date=at(17, days=2)),
            TaskRef(id="c", due_date=at(17, days=10)),
        ]
        plans = plan_range(today, today + timedelta(days=6), [], tasks, fixed_prefs, now)
        assert [p.date for p in plans] == [today, today + timedelta(days=2)]
        assert [b.task_ids for b in plans[1].blocks] == [("b",)]

    def test_no_tasks_due(self, today, now, fixed_prefs):
        assert plan_range(today, today + timedelta(days=6), [], [], fixed_prefs, now) == []

    def test_days_use_their_own_events(self, today, at, now, fixed_prefs):
        tasks = [TaskRef(id="a", due_date=at(17)), TaskRef(id="b", due_date=at(17, days=1))]
        events = [Event("Offsite", at(9, days=1), at(12, days=1))]
        plans = plan_range(today, today + timedelta(days=1), events, tasks, fixed_prefs, now)
        assert plans[0].blocks[0].start == at(9)
        assert plans[1].blocks[0].start == at(12, days=1)


class TestDateRangeForMode:
    def test_daily(self, today):
        assert date_range_for_mode(PlanningMode.DAILY, today) == (today, today)

    def test_weekly_monday_to_sunday(self, today):
        # 2025-01-15 is a Wednesday
        assert date_range_for_mode(PlanningMode.WEEKLY, today) == (date(2025, 1, 13), date(2025, 1, 19))

    def test_weekly_from_sunday(self):
        assert date_range_for_mode(PlanningMode.WEEKLY, date(2025, 1, 19)) == (date(2025, 1, 13), date(2025, 1, 19))

    def test_focus_two_days(self, today):
        assert date_range_for_mode(PlanningMode.FOCUS, today) == (today, date(2025, 1, 16))
