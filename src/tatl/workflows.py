"""Shared workflow layer between the CLI and the functional core.

Each function reads a snapshot through the repositories, asks the core for
new values, and commits them. The core itself never touches storage.
"""

import logging
from dataclasses import replace
from pathlib import Path

from .adapters.json_store import JsonStore
from .adapters.system_clock import SystemClock
from .config import Config
from .core.dates import parse_date_expr, parse_interval, to_epoch
from .core.errors import ConflictError, FormatError, InvalidInterval, SemanticError, TatlError
from .core.evaluator import apply_as_assignment, filter_sessions, filter_tasks
from .core.filters import FilterToken, parse_filter
from .core.sessions import IntervalMode, apply_interval_correction
from .core.tasks import Session, Task, TaskStatus, sort_by_due
from .ports.clock import Clock
from .ports.store import Store

logger = logging.getLogger(__name__)


class TaskNotFoundError(TatlError):
    """Raised when a task id does not exist."""

    pass


def get_store(config: Config) -> JsonStore:
    """Resolve the data file from config."""
    return JsonStore(Path(config.data_file).expanduser())


def get_clock(config: Config) -> SystemClock:
    return SystemClock(config.timezone)


def _tokens(args: list[str], clock: Clock, week_start: int) -> list[FilterToken]:
    return parse_filter(list(args), clock.now_local(), clock.now_utc(), week_start)


def _now_ts(clock: Clock) -> int:
    return to_epoch(clock.now_utc())


def _require_task(store: Store, task_id: int) -> Task:
    task = store.get(task_id)
    if task is None:
        raise TaskNotFoundError(f"Task {task_id} not found")
    return task


# ============== Tasks ==============


def add_task(store: Store, clock: Clock, args: list[str], week_start: int = 0) -> Task:
    """Create a task from assignment tokens ("Write report" +work due:eow)."""
    tokens = _tokens(args, clock, week_start)
    task = apply_as_assignment(tokens, Task(id=store.next_id(), description=""))
    if not task.description:
        raise FormatError("A task needs a description")
    store.save(task)
    logger.info(f"Created task {task.id}: {task.description}")
    return task


def list_tasks(store: Store, clock: Clock, args: list[str], week_start: int = 0) -> list[Task]:
    """Tasks matching the filter, soonest due first."""
    tokens = _tokens(args, clock, week_start)
    return sort_by_due(filter_tasks(tokens, store.fetch_all()))


def select_tasks(store: Store, clock: Clock, selector: list[str], week_start: int = 0) -> list[Task]:
    """Tasks matching a selector. An empty selector is refused."""
    if not selector:
        raise FormatError("A filter is required to select tasks (e.g. id:3 or +tag)")
    tokens = _tokens(selector, clock, week_start)
    return filter_tasks(tokens, store.fetch_all())


def modify_tasks(
    store: Store,
    clock: Clock,
    selector: list[str],
    assignments: list[str],
    week_start: int = 0,
) -> list[Task]:
    """Apply assignment tokens to every selected task."""
    # Parse both sides before committing anything
    matched = select_tasks(store, clock, selector, week_start)
    changes = _tokens(assignments, clock, week_start)

    updated = [apply_as_assignment(changes, task) for task in matched]
    for task in updated:
        store.save(task)
    logger.info(f"Modified {len(updated)} task(s)")
    return updated


def annotate_tasks(
    store: Store,
    clock: Clock,
    selector: list[str],
    note: str,
    week_start: int = 0,
) -> list[Task]:
    """Append a note to every selected task."""
    if not note.strip():
        raise FormatError("Annotation cannot be empty")
    annotated = []
    for task in select_tasks(store, clock, selector, week_start):
        task = replace(task, annotations=task.annotations + [note])
        store.save(task)
        annotated.append(task)
    return annotated


def complete_tasks(store: Store, clock: Clock, selector: list[str], week_start: int = 0) -> list[Task]:
    """Mark selected tasks done, stopping a running session on any of them."""
    now_ts = _now_ts(clock)
    done = []
    for task in select_tasks(store, clock, selector, week_start):
        sessions = store.fetch_for_task(task.id)
        if any(s.is_open for s in sessions):
            closed = [replace(s, end_ts=now_ts) if s.is_open else s for s in sessions]
            store.replace_for_task(task.id, closed)
            logger.info(f"Stopped timing task {task.id}")
        task = replace(task, status=TaskStatus.DONE)
        store.save(task)
        done.append(task)
    return done


# ============== Time tracking ==============


def start_tracking(
    store: Store,
    clock: Clock,
    task_id: int,
    when: str | None = None,
    week_start: int = 0,
) -> Session:
    """
    Open a session for a task.

    Only one session may run at a time: a session running on another task
    is closed where the new one starts.
    """
    _require_task(store, task_id)
    now_ts = _now_ts(clock)
    start_ts = parse_date_expr(when, clock.now_local(), clock.now_utc(), week_start) if when else now_ts
    if start_ts > now_ts:
        raise SemanticError("Cannot start timing in the future")

    running = store.fetch_open()
    if running is not None:
        if running.task_id == task_id:
            raise ConflictError(f"Task {task_id} is already being timed")
        if start_ts <= running.start_ts:
            raise ConflictError(f"New session would start before the running session of task {running.task_id}")
        _close_session(store, running, start_ts)

    sessions = store.fetch_for_task(task_id) + [Session(task_id=task_id, start_ts=start_ts)]
    stored = store.replace_for_task(task_id, sessions)
    logger.info(f"Started timing task {task_id}")
    return next(s for s in stored if s.is_open)


def stop_tracking(store: Store, clock: Clock, when: str | None = None, week_start: int = 0) -> Session:
    """Close the running session."""
    running = store.fetch_open()
    if running is None:
        raise ConflictError("No session is currently running")

    end_ts = parse_date_expr(when, clock.now_local(), clock.now_utc(), week_start) if when else _now_ts(clock)
    if end_ts <= running.start_ts:
        raise InvalidInterval("Stop time must be after the session start")
    return _close_session(store, running, end_ts)


def _close_session(store: Store, running: Session, end_ts: int) -> Session:
    closed = replace(running, end_ts=end_ts)
    sessions = [closed if s.id == running.id else s for s in store.fetch_for_task(running.task_id)]
    store.replace_for_task(running.task_id, sessions)
    logger.info(f"Stopped timing task {running.task_id}")
    return closed


def _break_task(store: Store, task_id: int | None) -> int:
    """The task a break applies to: the given one, or the one being timed."""
    if task_id is not None:
        _require_task(store, task_id)
        return task_id
    running = store.fetch_open()
    if running is None:
        raise ConflictError("No session is currently running; name the task to correct")
    return running.task_id


def resume_after_break(
    store: Store,
    clock: Clock,
    when: str,
    task_id: int | None = None,
    week_start: int = 0,
) -> tuple[Session, Session]:
    """
    Stop the running session at WHEN and start timing again now (offon <time>).

    Returns the stopped and the restarted session.
    """
    running = store.fetch_open()
    if running is None:
        raise ConflictError("No session is currently running")
    if task_id is not None and running.task_id != task_id:
        raise ConflictError(f"Task {task_id} is not being timed (task {running.task_id} is)")

    now_ts = _now_ts(clock)
    stop_ts = parse_date_expr(when, clock.now_local(), clock.now_utc(), week_start)
    if stop_ts <= running.start_ts:
        raise InvalidInterval("Break must start after the session start")
    if stop_ts >= now_ts:
        raise InvalidInterval("Break must start before now")

    stopped = replace(running, end_ts=stop_ts)
    sessions = [stopped if s.id == running.id else s for s in store.fetch_for_task(running.task_id)]
    stored = store.replace_for_task(
        running.task_id, sessions + [Session(task_id=running.task_id, start_ts=now_ts)]
    )
    logger.info(f"Task {running.task_id} on a break from {stop_ts} until now")
    return stopped, next(s for s in stored if s.is_open)


def record_break(
    store: Store,
    clock: Clock,
    task_id: int | None,
    interval_text: str,
    week_start: int = 0,
) -> list[Session]:
    """
    Remove <start>..<end> from a task's tracked time (offon).

    A single time instead of an interval means the break started then and
    ends now. Without a task id the running task is corrected.
    """
    if ".." not in interval_text:
        stopped, _ = resume_after_break(store, clock, interval_text, task_id, week_start)
        return store.fetch_for_task(stopped.task_id)

    task_id = _break_task(store, task_id)
    interval = parse_interval(interval_text, clock.now_local(), clock.now_utc(), week_start)
    corrected = apply_interval_correction(
        store.fetch_for_task(task_id),
        interval,
        IntervalMode.CARVE_OUT,
        task_id=task_id,
        now=_now_ts(clock),
    )
    logger.info(f"Removed {interval.duration()}s from task {task_id}")
    return store.replace_for_task(task_id, corrected)


def record_work(
    store: Store,
    clock: Clock,
    task_id: int,
    interval_text: str,
    week_start: int = 0,
) -> list[Session]:
    """
    Log <start>..<end> as worked on a task (onoff).

    Time can only be tracked on one task at once, so the interval is carved
    out of any other task's overlapping sessions.
    """
    _require_task(store, task_id)
    interval = parse_interval(interval_text, clock.now_local(), clock.now_utc(), week_start)
    now_ts = _now_ts(clock)

    # Compute the whole change before committing any of it
    corrected = apply_interval_correction(
        store.fetch_for_task(task_id),
        interval,
        IntervalMode.INSERT_ACTIVE,
        task_id=task_id,
        now=now_ts,
    )

    others: dict[int, list[Session]] = {}
    for session in store.fetch_all_sessions():
        if session.task_id != task_id:
            others.setdefault(session.task_id, []).append(session)

    cleared: dict[int, list[Session]] = {}
    for other_id, sessions in others.items():
        if any(s.overlaps(interval.start_ts, interval.end_ts) for s in sessions):
            cleared[other_id] = apply_interval_correction(
                sessions, interval, IntervalMode.CARVE_OUT, task_id=other_id, now=now_ts
            )

    for other_id, sessions in cleared.items():
        store.replace_for_task(other_id, sessions)
        logger.info(f"Cleared overlapping time from task {other_id}")

    logger.info(f"Added {interval.duration()}s to task {task_id}")
    return store.replace_for_task(task_id, corrected)


def list_sessions(
    store: Store,
    clock: Clock,
    args: list[str],
    week_start: int = 0,
) -> list[tuple[Session, Task]]:
    """Sessions whose task matches the filter; date ranges apply to session start."""
    tokens = _tokens(args, clock, week_start)
    tasks_by_id = {t.id: t for t in store.fetch_all()}
    sessions = filter_sessions(tokens, store.fetch_all_sessions(), tasks_by_id)
    return [(s, tasks_by_id[s.task_id]) for s in sessions]
