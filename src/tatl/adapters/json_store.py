"""File-based task and session storage adapter."""

import json
import logging
import os
from dataclasses import replace
from pathlib import Path

from tatl.core.tasks import Session, Task

logger = logging.getLogger(__name__)


class JsonStore:
    """
    Single JSON file holding tasks and sessions.

    Implements TaskRepository and SessionRepository protocols. Every call
    reads the file and every commit rewrites it; there is no locking.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _load(self) -> dict:
        if not self.path.exists():
            return {"tasks": [], "sessions": []}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse data file {self.path}: {e}")
            raise RuntimeError(f"Data file {self.path} is not valid JSON: {e}")
        data.setdefault("tasks", [])
        data.setdefault("sessions", [])
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        os.replace(tmp, self.path)

    # Tasks

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks, ordered by id."""
        tasks = [Task.from_record(r) for r in self._load()["tasks"]]
        return sorted(tasks, key=lambda t: t.id)

    def get(self, task_id: int) -> Task | None:
        """Fetch one task. Returns None if not found."""
        return next((t for t in self.fetch_all() if t.id == task_id), None)

    def next_id(self) -> int:
        """Identifier for the next new task."""
        return max((r["id"] for r in self._load()["tasks"]), default=0) + 1

    def save(self, task: Task) -> None:
        """Insert or replace a task."""
        data = self._load()
        records = [r for r in data["tasks"] if r["id"] != task.id]
        records.append(task.to_record())
        data["tasks"] = sorted(records, key=lambda r: r["id"])
        self._write(data)
        logger.debug(f"Saved task {task.id}")

    # Sessions

    def fetch_all_sessions(self) -> list[Session]:
        """Fetch every session, ordered by start time."""
        sessions = [Session.from_record(r) for r in self._load()["sessions"]]
        return sorted(sessions, key=lambda s: s.start_ts)

    def fetch_for_task(self, task_id: int) -> list[Session]:
        """Fetch the sessions of one task, ordered by start time."""
        return [s for s in self.fetch_all_sessions() if s.task_id == task_id]

    def fetch_open(self) -> Session | None:
        """The single running session, if any."""
        return next((s for s in self.fetch_all_sessions() if s.is_open), None)

    def replace_for_task(self, task_id: int, sessions: list[Session]) -> list[Session]:
        """Replace all sessions of a task. Returns them with ids assigned."""
        data = self._load()
        next_id = max((r.get("id") or 0 for r in data["sessions"]), default=0) + 1

        stored = []
        for session in sessions:
            if session.id is None:
                session = replace(session, task_id=task_id, id=next_id)
                next_id += 1
            stored.append(session)

        others = [r for r in data["sessions"] if r["task_id"] != task_id]
        data["sessions"] = others + [s.to_record() for s in stored]
        self._write(data)
        logger.debug(f"Replaced sessions of task {task_id}: {len(stored)} session(s)")
        return sorted(stored, key=lambda s: s.start_ts)
