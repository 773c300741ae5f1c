"""Task repository interface."""

from typing import Protocol

from tatl.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for reading and committing tasks in any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks, ordered by id."""
        ...

    def get(self, task_id: int) -> Task | None:
        """Fetch one task. Returns None if not found."""
        ...

    def next_id(self) -> int:
        """Identifier for the next new task."""
        ...

    def save(self, task: Task) -> None:
        """Insert or replace a task."""
        ...
