"""Pure date expression logic - no I/O dependencies.

Every expression resolves to a local wall-clock time first and is then
converted to UTC epoch seconds with a fixed DST policy:

- a repeated wall time (clocks set back) resolves to the first occurrence;
- a skipped wall time (clocks set forward) is an error.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from .errors import (
    AmbiguousOrInvalidLocalTime,
    FormatError,
    InvalidCalendarDate,
    InvalidInterval,
    UnrecognizedDateFormat,
)
from .tasks import Interval

_ABSOLUTE = re.compile(r"(\d{4})-(\d{2})-(\d{2})(?:T(\d{2}):(\d{2}))?")
_RELATIVE = re.compile(r"([+-]?)(\d+)([dw])")
_CLOCK = re.compile(r"(\d{1,2}):(\d{2})")
_MERIDIEM = re.compile(r"(\d{1,2})(am|pm)")

END_OF_DAY = time(23, 59, 59)


def to_epoch(dt: datetime) -> int:
    """Aware datetime -> integer seconds since the epoch (sub-second part dropped)."""
    return calendar.timegm(dt.astimezone(timezone.utc).timetuple())


def localize(wall: datetime, tz: tzinfo) -> datetime:
    """
    Attach a timezone to a naive wall-clock time.

    fold=0 selects the earlier occurrence of a repeated time. A skipped time
    does not survive a round trip through UTC, which is how gaps are detected.
    """
    candidate = wall.replace(tzinfo=tz, fold=0)
    roundtrip = candidate.astimezone(timezone.utc).astimezone(tz)
    if roundtrip.replace(tzinfo=None) != wall:
        raise AmbiguousOrInvalidLocalTime(
            f"{wall.strftime('%Y-%m-%d %H:%M')} does not exist in {tz} (DST gap)"
        )
    return candidate


def _midnight(d: date) -> datetime:
    return datetime.combine(d, time(0, 0))


def _absolute(expr: str, wall_now: datetime, week_start: int) -> datetime | None:
    match = _ABSOLUTE.fullmatch(expr)
    if not match:
        return None
    year, month, day, hour, minute = match.groups()
    try:
        return datetime(int(year), int(month), int(day), int(hour or 0), int(minute or 0))
    except ValueError as e:
        raise InvalidCalendarDate(f"Invalid date '{expr}': {e}") from e


def _relative(expr: str, wall_now: datetime, week_start: int) -> datetime | None:
    match = _RELATIVE.fullmatch(expr)
    if not match:
        return None
    sign, amount, unit = match.groups()
    days = int(amount) * (7 if unit == "w" else 1)
    if sign == "-":
        days = -days
    try:
        return wall_now + timedelta(days=days)
    except OverflowError as e:
        raise InvalidCalendarDate(f"Invalid date '{expr}': out of range") from e


def _named_relative(expr: str, wall_now: datetime, week_start: int) -> datetime | None:
    if expr == "today":
        return _midnight(wall_now.date())
    if expr == "tomorrow":
        return _midnight(wall_now.date() + timedelta(days=1))
    return None


def _end_of_period(expr: str, wall_now: datetime, week_start: int) -> datetime | None:
    today = wall_now.date()
    if expr == "eod":
        last_day = today
    elif expr == "eow":
        # Last day of the week that starts on week_start
        last_day = today + timedelta(days=6 - (today.weekday() - week_start) % 7)
    elif expr == "eom":
        last_day = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    else:
        return None
    return datetime.combine(last_day, END_OF_DAY)


def _time_only(expr: str, wall_now: datetime, week_start: int) -> datetime | None:
    clock = _CLOCK.fullmatch(expr)
    meridiem = _MERIDIEM.fullmatch(expr)

    if expr == "noon":
        hour, minute = 12, 0
    elif expr == "midnight":
        hour, minute = 0, 0
    elif clock:
        hour, minute = int(clock.group(1)), int(clock.group(2))
        if hour > 23 or minute > 59:
            raise InvalidCalendarDate(f"Invalid time '{expr}'")
    elif meridiem:
        hour, minute = int(meridiem.group(1)), 0
        if not 1 <= hour <= 12:
            raise InvalidCalendarDate(f"Invalid time '{expr}': hour must be 1-12")
        # 12am is midnight, 12pm is noon
        hour = hour % 12 + (12 if meridiem.group(2) == "pm" else 0)
    else:
        return None
    return datetime.combine(wall_now.date(), time(hour, minute))


# Precedence order: first full match wins
_FORMS = (_absolute, _relative, _named_relative, _end_of_period, _time_only)


def parse_date_expr(
    text: str,
    now_local: datetime,
    now_utc: datetime,
    week_start: int = 0,
) -> int:
    """
    Parse a date expression into UTC epoch seconds.

    Pure function - "now" is always supplied by the caller.

    Args:
        text: Expression such as "2026-01-10T14:30", "+2d", "tomorrow", "eow", "9am"
        now_local: Current time, aware, in the user's timezone
        now_utc: Current time, aware, in UTC
        week_start: First day of the week for "eow" (0=Monday ... 6=Sunday)

    Returns:
        Seconds since the epoch
    """
    if now_local.tzinfo is None:
        raise ValueError("now_local must be timezone-aware")

    expr = text.strip()
    if expr == "now":
        return to_epoch(now_utc)

    wall_now = now_local.replace(tzinfo=None)
    for form in _FORMS:
        wall = form(expr, wall_now, week_start)
        if wall is not None:
            return to_epoch(localize(wall, now_local.tzinfo))

    raise UnrecognizedDateFormat(f"Unrecognized date expression: '{text}'")


def parse_interval(
    text: str,
    now_local: datetime,
    now_utc: datetime,
    week_start: int = 0,
) -> Interval:
    """Parse "<start>..<end>" into an Interval. Both sides are required."""
    start_text, sep, end_text = text.partition("..")
    if not sep or not start_text or not end_text:
        raise FormatError(f"Interval required, expected <start>..<end>, got '{text}'")

    start_ts = parse_date_expr(start_text, now_local, now_utc, week_start)
    end_ts = parse_date_expr(end_text, now_local, now_utc, week_start)
    if start_ts >= end_ts:
        raise InvalidInterval(f"Start time must be before end time in '{text}'")
    return Interval(start_ts=start_ts, end_ts=end_ts)
