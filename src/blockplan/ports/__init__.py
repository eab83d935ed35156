"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskSource
from .calendar_repo import CalendarSource
from .schedule_repo import ScheduleSource

__all__ = [
    "TaskSource",
    "CalendarSource",
    "ScheduleSource",
]
