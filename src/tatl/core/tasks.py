"""Pure task and session domain model - no I/O dependencies."""

from dataclasses import dataclass, field
from enum import Enum

# Some older stores wrote this instead of NULL for a running session
LEGACY_OPEN_SENTINEL = 2**63 - 1


class TaskStatus(Enum):
    """Kanban-style status. Classified upstream; the core never derives it."""

    PROPOSED = "proposed"
    STALLED = "stalled"
    QUEUED = "queued"
    ACTIVE = "active"
    DONE = "done"
    EXTERNAL = "external"

    @classmethod
    def parse(cls, value: str) -> "TaskStatus":
        """Case-insensitive lookup by name. Raises ValueError if unknown."""
        return cls(value.strip().lower())

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class Task:
    """A task snapshot as handed to the core by the storage layer."""

    id: int
    description: str
    status: TaskStatus = TaskStatus.PROPOSED
    tags: set[str] = field(default_factory=set)
    project: str | None = None
    due_ts: int | None = None
    alloc_secs: int | None = None
    annotations: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    def is_overdue(self, now_ts: int) -> bool:
        """Due date has passed and the task is not done."""
        return self.due_ts is not None and self.due_ts < now_ts and not self.is_done

    def to_record(self) -> dict:
        """Plain dict for JSON storage."""
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "tags": sorted(self.tags),
            "project": self.project,
            "due_ts": self.due_ts,
            "alloc_secs": self.alloc_secs,
            "annotations": list(self.annotations),
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_record(cls, data: dict) -> "Task":
        """Create Task from a stored record."""
        return cls(
            id=data["id"],
            description=data.get("description", ""),
            status=TaskStatus(data.get("status", TaskStatus.PROPOSED.value)),
            tags=set(data.get("tags", [])),
            project=data.get("project"),
            due_ts=data.get("due_ts"),
            alloc_secs=data.get("alloc_secs"),
            annotations=list(data.get("annotations", [])),
            attributes=dict(data.get("attributes", {})),
        )


@dataclass(frozen=True)
class Interval:
    """A resolved [start_ts, end_ts) span in epoch seconds."""

    start_ts: int
    end_ts: int

    def duration(self) -> int:
        return self.end_ts - self.start_ts


@dataclass(frozen=True)
class Session:
    """A time-tracking span. end_ts is None while the session is running."""

    task_id: int
    start_ts: int
    end_ts: int | None = None
    id: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end_ts is None

    def duration(self, now_ts: int) -> int:
        """Tracked seconds; an open session counts up to now_ts."""
        end = now_ts if self.end_ts is None else self.end_ts
        return max(0, end - self.start_ts)

    def overlaps(self, start_ts: int, end_ts: int) -> bool:
        """Strict overlap with [start_ts, end_ts). Open sessions extend forever."""
        if self.start_ts >= end_ts:
            return False
        return self.end_ts is None or self.end_ts > start_ts

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
        }

    @classmethod
    def from_record(cls, data: dict) -> "Session":
        """Create Session from a stored record, normalizing legacy open markers."""
        end_ts = data.get("end_ts")
        if end_ts is not None and end_ts >= LEGACY_OPEN_SENTINEL:
            end_ts = None
        return cls(
            task_id=data["task_id"],
            start_ts=data["start_ts"],
            end_ts=end_ts,
            id=data.get("id"),
        )


def find_open_session(sessions: list[Session]) -> Session | None:
    """The running session, if any."""
    return next((s for s in sessions if s.is_open), None)


def sort_by_due(tasks: list[Task]) -> list[Task]:
    """
    Sort tasks by due date (ascending), undated tasks last, then by id.

    Pure function - no I/O.
    """

    def sort_key(t: Task) -> tuple[int, int, int]:
        return (t.due_ts is None, t.due_ts or 0, t.id)

    return sorted(tasks, key=sort_key)


def total_tracked(sessions: list[Session], now_ts: int) -> int:
    """Sum of session durations in seconds."""
    return sum(s.duration(now_ts) for s in sessions)
