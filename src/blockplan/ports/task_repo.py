"""Task source interface."""

from typing import Protocol

from blockplan.core.tasks import TaskRef


class TaskSource(Protocol):
    """Interface for reading a task snapshot from any backend."""

    def fetch_all(self) -> list[TaskRef]:
        """Fetch all tasks."""
        ...
