"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskRepository
from .session_repo import SessionRepository
from .clock import Clock
from .store import Store

__all__ = [
    "TaskRepository",
    "SessionRepository",
    "Clock",
    "Store",
]
