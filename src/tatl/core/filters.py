"""Filter token language - no I/O dependencies.

Arguments such as ``+urgent project:work due:eow "report" -7d..now`` parse
into context-neutral tokens. Whether a token selects tasks or assigns a
value is decided by the caller (see evaluator.apply_as_predicate and
evaluator.apply_as_assignment), never by the parser.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .dates import parse_date_expr
from .duration import parse_duration
from .errors import FilterTokenError, TatlError
from .tasks import TaskStatus

_FIELD = re.compile(r"([A-Za-z][A-Za-z0-9_-]*)([:=])(.*)", re.DOTALL)

# Fields with dedicated Task attributes; anything else is a user-defined attribute
KNOWN_FIELDS = ("project", "due", "allocation", "description", "status", "id")


class FieldOp(Enum):
    EQUALS = "equals"
    SET = "set"


@dataclass(frozen=True)
class Tag:
    name: str
    negated: bool = False


@dataclass(frozen=True)
class Field:
    """
    A field token.

    op=EQUALS with value None means "absent" (predicate) or "clear"
    (assignment). op=SET means "present" and only works as a predicate.
    """

    name: str
    op: FieldOp
    value: str | int | TaskStatus | None


@dataclass(frozen=True)
class FreeText:
    text: str


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end]; None means unbounded on that side."""

    start: int | None
    end: int | None

    def contains(self, ts: int) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True


FilterToken = Tag | Field | FreeText | DateRange


def parse_filter(
    args: list[str],
    now_local: datetime,
    now_utc: datetime,
    week_start: int = 0,
) -> list[FilterToken]:
    """
    Parse command arguments into filter tokens.

    Fail-fast: the first bad token raises FilterTokenError and no partial
    list is returned.
    """
    return [_parse_token(arg, now_local, now_utc, week_start) for arg in args]


def _parse_token(token: str, now_local: datetime, now_utc: datetime, week_start: int) -> FilterToken:
    # "+1d..+7d" is a range starting at a relative offset, not a tag
    if token.startswith("+") and not (".." in token and token[1:2].isdigit()):
        return _parse_tag(token, negated=False)
    # "-3d" stays a date-ish word; only "-<letter>..." is a tag removal
    if token.startswith("-") and len(token) > 1 and token[1].isalpha():
        return _parse_tag(token, negated=True)

    match = _FIELD.fullmatch(token)
    if match:
        name, _, value = match.groups()
        return _parse_field(token, name, value, now_local, now_utc, week_start)

    if ".." in token:
        return _parse_range(token, now_local, now_utc, week_start)

    return FreeText(token)


def _parse_tag(token: str, negated: bool) -> Tag:
    name = token[1:]
    if not name or any(c.isspace() for c in name):
        raise FilterTokenError(token, "tag name must be non-empty with no whitespace")
    return Tag(name=name, negated=negated)


def _parse_field(
    token: str,
    name: str,
    value: str,
    now_local: datetime,
    now_utc: datetime,
    week_start: int,
) -> Field:
    if value == "any":
        return Field(name=name, op=FieldOp.SET, value=None)
    if value in ("", "none"):
        return Field(name=name, op=FieldOp.EQUALS, value=None)

    try:
        if name == "due":
            resolved = parse_date_expr(value, now_local, now_utc, week_start)
        elif name == "allocation":
            resolved = parse_duration(value)
        elif name == "status":
            resolved = TaskStatus.parse(value)
        elif name == "id":
            resolved = int(value)
        else:
            resolved = value
    except TatlError as e:
        raise FilterTokenError(token, str(e)) from e
    except ValueError as e:
        raise FilterTokenError(token, f"invalid {name} value '{value}'") from e

    return Field(name=name, op=FieldOp.EQUALS, value=resolved)


def _parse_range(token: str, now_local: datetime, now_utc: datetime, week_start: int) -> DateRange:
    start_text, _, end_text = token.partition("..")
    if ".." in end_text:
        raise FilterTokenError(token, "a date range has exactly one '..'")

    try:
        start = parse_date_expr(start_text, now_local, now_utc, week_start) if start_text else None
        end = parse_date_expr(end_text, now_local, now_utc, week_start) if end_text else None
    except TatlError as e:
        raise FilterTokenError(token, str(e)) from e

    if start is not None and end is not None and start > end:
        raise FilterTokenError(token, "range start is after its end")
    return DateRange(start=start, end=end)
