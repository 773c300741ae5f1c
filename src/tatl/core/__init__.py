"""Functional core - pure business logic with no I/O."""

from .tasks import Task, TaskStatus, Session, Interval, find_open_session, sort_by_due
from .duration import parse_duration, format_duration
from .dates import parse_date_expr, parse_interval
from .filters import Tag, Field, FieldOp, FreeText, DateRange, FilterToken, parse_filter
from .evaluator import (
    apply_as_assignment,
    apply_as_predicate,
    filter_sessions,
    filter_tasks,
)
from .sessions import IntervalMode, apply_interval_correction
from .errors import TatlError, FormatError, SemanticError, ConflictError

__all__ = [
    # Model
    "Task",
    "TaskStatus",
    "Session",
    "Interval",
    "find_open_session",
    "sort_by_due",
    # Parsing
    "parse_duration",
    "format_duration",
    "parse_date_expr",
    "parse_interval",
    # Filters
    "Tag",
    "Field",
    "FieldOp",
    "FreeText",
    "DateRange",
    "FilterToken",
    "parse_filter",
    "apply_as_assignment",
    "apply_as_predicate",
    "filter_sessions",
    "filter_tasks",
    # Sessions
    "IntervalMode",
    "apply_interval_correction",
    # Errors
    "TatlError",
    "FormatError",
    "SemanticError",
    "ConflictError",
]
