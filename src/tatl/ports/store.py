"""Combined storage interface."""

from typing import Protocol

from .session_repo import SessionRepository
from .task_repo import TaskRepository


class Store(TaskRepository, SessionRepository, Protocol):
    """Tasks and sessions committed through one backend."""

    ...
