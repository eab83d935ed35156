"""Adapters - I/O implementations of ports."""

from .json_snapshot import JsonTaskSource, JsonCalendarSource, JsonScheduleSource, SnapshotError
from .apscheduler_trigger import ScheduleRuleTrigger, add_rule_job

__all__ = [
    "JsonTaskSource",
    "JsonCalendarSource",
    "JsonScheduleSource",
    "SnapshotError",
    "ScheduleRuleTrigger",
    "add_rule_job",
]
