"""Pure task selection logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable

DUE_HORIZON = timedelta(hours=48)


class Priority(Enum):
    """Task priority. Unknown values fail at construction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank: high=0, medium=1, low=2."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def _parse_due(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time(0, 0))
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class TaskRef:
    """The slice of a task the scheduler needs."""

    id: str
    title: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    completed: bool = False
    cancelled: bool = False

    @property
    def is_eligible(self) -> bool:
        """Only open tasks get focus blocks."""
        return not self.completed and not self.cancelled

    @property
    def display_title(self) -> str:
        return self.title or self.id

    def is_due_within(self, now: datetime, horizon: timedelta = DUE_HORIZON) -> bool:
        """Due before now + horizon. Overdue tasks count."""
        if self.due_date is None:
            return False
        return self.due_date < now + horizon

    def due_on(self, day: date) -> bool:
        return self.due_date is not None and self.due_date.date() == day

    @classmethod
    def from_dict(cls, data: dict) -> "TaskRef":
        """Create a TaskRef from a task-store record."""
        return cls(
            id=str(data["id"]),
            title=data.get("title", "") or "",
            priority=Priority(data.get("priority") or "medium"),
            due_date=_parse_due(data.get("dueDate")),
            completed=bool(data.get("completed", False)),
            cancelled=data.get("status") == "cancelled" or bool(data.get("cancelled", False)),
        )


def sort_by_priority(tasks: Iterable[TaskRef]) -> list[TaskRef]:
    """
    Sort tasks by priority rank, then due date ascending.

    Tasks with a due date come before tasks without one.
    Pure function - no I/O.
    """

    def sort_key(t: TaskRef) -> tuple:
        if t.due_date is None:
            return (t.priority.rank, 1, 0.0)
        # timestamp() keeps naive and aware due dates comparable
        return (t.priority.rank, 0, t.due_date.timestamp())

    return sorted(tasks, key=sort_key)


def filter_eligible(tasks: Iterable[TaskRef]) -> list[TaskRef]:
    """Drop completed and cancelled tasks."""
    return [t for t in tasks if t.is_eligible]


def select_tasks(
    tasks: Iterable[TaskRef],
    now: datetime,
    task_ids: Iterable[str] | None = None,
    horizon: timedelta = DUE_HORIZON,
    min_priority: Priority | None = None,
) -> list[TaskRef]:
    """
    Pick and order the tasks to block out time for.

    Without task_ids, tasks due within the horizon (or undated) are chosen.
    With task_ids, exactly those tasks are considered.

    Pure function - no I/O.

    Args:
        tasks: Task snapshot
        now: Reference instant for the due-date horizon
        task_ids: Explicit selection, overrides the horizon filter
        horizon: How far ahead a due date may be
        min_priority: Drop tasks ranked below this priority

    Returns:
        Eligible tasks, highest priority first
    """
    if now is None:
        raise TypeError("select_tasks requires now")

    candidates = filter_eligible(tasks)

    if task_ids is not None:
        wanted = set(task_ids)
        candidates = [t for t in candidates if t.id in wanted]
    else:
        candidates = [t for t in candidates if t.due_date is None or t.is_due_within(now, horizon)]

    if min_priority is not None:
        candidates = [t for t in candidates if t.priority.rank <= min_priority.rank]

    return sort_by_priority(candidates)


def filter_due_between(tasks: Iterable[TaskRef], start_date: date, end_date: date) -> list[TaskRef]:
    """Eligible tasks whose due date falls in [start_date, end_date]."""
    return [
        t
        for t in filter_eligible(tasks)
        if t.due_date is not None and start_date <= t.due_date.date() <= end_date
    ]
