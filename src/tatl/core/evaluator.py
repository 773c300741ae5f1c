"""Interpreting filter tokens against tasks - no I/O dependencies.

The same token list is read one of two ways, chosen by the caller:

- apply_as_predicate: does this task match? (selectors, list, reports)
- apply_as_assignment: what does this task look like after the change? (add, modify)
"""

from dataclasses import replace

from .errors import AssignmentError
from .filters import DateRange, Field, FieldOp, FilterToken, FreeText, Tag
from .tasks import Session, Task

# Field token name -> Task attribute
_TASK_ATTRS = {
    "project": "project",
    "due": "due_ts",
    "allocation": "alloc_secs",
    "description": "description",
    "status": "status",
    "id": "id",
}


def _field_value(task: Task, name: str):
    if name in _TASK_ATTRS:
        value = getattr(task, _TASK_ATTRS[name])
        # An empty description counts as absent
        return value if value != "" else None
    return task.attributes.get(name)


def apply_as_predicate(token: FilterToken, task: Task) -> bool:
    """Check a single token against a task. Never raises."""
    match token:
        case Tag(name=name, negated=negated):
            return (name in task.tags) != negated
        case Field(name=name, op=FieldOp.SET):
            return _field_value(task, name) is not None
        case Field(name=name, value=value):
            return _field_value(task, name) == value
        case FreeText(text=text):
            return text in task.description
        case DateRange():
            return task.due_ts is not None and token.contains(task.due_ts)
    return False


def task_matches(tokens: list[FilterToken], task: Task) -> bool:
    """Implicit AND over all tokens; an empty token list matches everything."""
    return all(apply_as_predicate(token, task) for token in tokens)


def filter_tasks(tokens: list[FilterToken], tasks: list[Task]) -> list[Task]:
    """
    Filter tasks to those matching every token.

    Pure function - no I/O. Input order is preserved; no match is an empty list.
    """
    if not tokens:
        return list(tasks)
    return [t for t in tasks if task_matches(tokens, t)]


def filter_sessions(
    tokens: list[FilterToken],
    sessions: list[Session],
    tasks_by_id: dict[int, Task],
) -> list[Session]:
    """
    Filter sessions for reports.

    DateRange tokens test the session's start time; every other token tests
    the session's task. Sessions whose task is unknown never match.
    """
    ranges = [t for t in tokens if isinstance(t, DateRange)]
    task_tokens = [t for t in tokens if not isinstance(t, DateRange)]

    matched = []
    for session in sessions:
        task = tasks_by_id.get(session.task_id)
        if task is None:
            continue
        if not all(r.contains(session.start_ts) for r in ranges):
            continue
        if task_matches(task_tokens, task):
            matched.append(session)
    return matched


def apply_as_assignment(tokens: list[FilterToken], task: Task) -> Task:
    """
    Apply tokens as changes and return the updated task.

    The input task is not modified. Free text words replace the description
    (joined by spaces) when any are present; this is how "add" builds one.
    """
    tags = set(task.tags)
    attributes = dict(task.attributes)
    changes: dict = {}
    words: list[str] = []

    for token in tokens:
        match token:
            case Tag(name=name, negated=False):
                tags.add(name)
            case Tag(name=name, negated=True):
                tags.discard(name)
            case FreeText(text=text):
                words.append(text)
            case Field(name=name, op=FieldOp.SET):
                raise AssignmentError(f"'{name}:any' can only be used to select tasks")
            case Field(name="id"):
                raise AssignmentError("Task id cannot be changed")
            case Field(name="description", value=value):
                if value is None:
                    raise AssignmentError("Description cannot be empty")
                changes["description"] = value
            case Field(name="status", value=value):
                if value is None:
                    raise AssignmentError("Status cannot be cleared")
                changes["status"] = value
            case Field(name=name, value=value) if name in _TASK_ATTRS:
                changes[_TASK_ATTRS[name]] = value
            case Field(name=name, value=None):
                attributes.pop(name, None)
            case Field(name=name, value=value):
                attributes[name] = value
            case DateRange():
                raise AssignmentError("A date range can only be used to select tasks")

    if words:
        changes["description"] = " ".join(words)

    return replace(task, tags=tags, attributes=attributes, **changes)
