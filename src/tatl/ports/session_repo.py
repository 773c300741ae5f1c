"""Session repository interface."""

from typing import Protocol

from tatl.core.tasks import Session


class SessionRepository(Protocol):
    """Interface for reading and committing time-tracking sessions."""

    def fetch_all_sessions(self) -> list[Session]:
        """Fetch every session, ordered by start time."""
        ...

    def fetch_for_task(self, task_id: int) -> list[Session]:
        """Fetch the sessions of one task, ordered by start time."""
        ...

    def fetch_open(self) -> Session | None:
        """The single running session, if any."""
        ...

    def replace_for_task(self, task_id: int, sessions: list[Session]) -> list[Session]:
        """Replace all sessions of a task. Returns them with ids assigned."""
        ...
