"""Retroactive session corrections - no I/O dependencies."""

from dataclasses import replace
from enum import Enum

from .errors import ConflictingOpenSession, InvalidInterval, NoOverlappingSession
from .tasks import Interval, Session


class IntervalMode(Enum):
    """How a target interval changes a task's tracked time."""

    CARVE_OUT = "carve_out"  # offon: the interval was a break
    INSERT_ACTIVE = "insert_active"  # onoff: the interval was work


def apply_interval_correction(
    sessions: list[Session],
    interval: Interval,
    mode: IntervalMode,
    *,
    task_id: int,
    now: int,
) -> list[Session]:
    """
    Compute a task's replacement session list for a corrected interval.

    Pure function - no I/O. The input list is not modified; the caller
    persists the returned list (sorted by start time) in its place.

    Args:
        sessions: All sessions of the task
        interval: Target interval, start_ts < end_ts
        mode: CARVE_OUT removes the interval, INSERT_ACTIVE adds it
        task_id: Owner of any newly created session
        now: Current UTC epoch seconds

    Returns:
        Replacement sessions for the task
    """
    if interval.start_ts >= interval.end_ts:
        raise InvalidInterval("Start time must be before end time")

    if mode == IntervalMode.CARVE_OUT:
        result = _carve_out(sessions, interval, now)
    else:
        result = _insert_active(sessions, interval, task_id)
    return sorted(result, key=lambda s: s.start_ts)


def _carve_out(sessions: list[Session], interval: Interval, now: int) -> list[Session]:
    result: list[Session] = []
    touched = False

    for session in sessions:
        if not session.overlaps(interval.start_ts, interval.end_ts):
            result.append(session)
            continue

        touched = True
        if session.is_open and interval.start_ts > now:
            raise InvalidInterval("A break on a running session cannot start in the future")
        pieces: list[Session] = []
        if session.start_ts < interval.start_ts:
            pieces.append(replace(session, end_ts=interval.start_ts))
        if session.is_open:
            # A break that runs up to now stops the session instead
            if interval.end_ts < now:
                pieces.append(Session(task_id=session.task_id, start_ts=interval.end_ts))
        elif session.end_ts > interval.end_ts:
            pieces.append(
                Session(task_id=session.task_id, start_ts=interval.end_ts, end_ts=session.end_ts)
            )

        # First piece keeps the stored id so the caller can update in place
        if pieces and not any(p.id == session.id for p in pieces):
            pieces[0] = replace(pieces[0], id=session.id)
        result.extend(pieces)

    if not touched:
        raise NoOverlappingSession("No sessions found overlapping the given interval")
    return result


def _insert_active(sessions: list[Session], interval: Interval, task_id: int) -> list[Session]:
    open_sessions = [s for s in sessions if s.is_open]
    if len(open_sessions) > 1:
        raise ConflictingOpenSession("Task already has more than one open session")

    overlapping = [s for s in sessions if s.overlaps(interval.start_ts, interval.end_ts)]
    if open_sessions and open_sessions[0] not in overlapping:
        raise ConflictingOpenSession(
            "Task is currently being tracked; stop it before logging other time"
        )

    if not overlapping:
        return list(sessions) + [
            Session(task_id=task_id, start_ts=interval.start_ts, end_ts=interval.end_ts)
        ]

    start_ts = min([interval.start_ts] + [s.start_ts for s in overlapping])
    if any(s.is_open for s in overlapping):
        end_ts = None
    else:
        end_ts = max([interval.end_ts] + [s.end_ts for s in overlapping])

    first = min(overlapping, key=lambda s: s.start_ts)
    merged = replace(first, start_ts=start_ts, end_ts=end_ts)
    rest = [s for s in sessions if s not in overlapping]
    return rest + [merged]
