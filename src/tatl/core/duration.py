"""Duration expressions like 2d5h30m - no I/O dependencies."""

import re

from .errors import DuplicateDurationUnit, DurationOutOfOrder, InvalidDurationFormat

UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}
UNIT_ORDER = "dhms"

_GROUP = re.compile(r"([0-9]+)([dhms])")


def parse_duration(text: str) -> int:
    """
    Parse a duration expression into total seconds.

    Groups are <integer><unit>, units d/h/m/s in strictly descending order,
    each at most once: "1h30m" -> 5400, "10s30m" and "1h30m1h" are rejected.
    """
    if not text:
        raise InvalidDurationFormat("Duration cannot be empty")

    total = 0
    pos = 0
    seen: set[str] = set()
    last_rank = -1

    while pos < len(text):
        match = _GROUP.match(text, pos)
        if not match:
            raise InvalidDurationFormat(
                f"Invalid duration '{text}': expected <number><d|h|m|s> at '{text[pos:]}'"
            )
        magnitude, unit = match.groups()
        if unit in seen:
            raise DuplicateDurationUnit(f"Invalid duration '{text}': unit '{unit}' appears twice")
        rank = UNIT_ORDER.index(unit)
        if rank < last_rank:
            raise DurationOutOfOrder(
                f"Invalid duration '{text}': units must be in order d, h, m, s"
            )
        seen.add(unit)
        last_rank = rank
        total += int(magnitude) * UNIT_SECONDS[unit]
        pos = match.end()

    return total


def format_duration(seconds: int) -> str:
    """Render seconds in the same compact form parse_duration accepts."""
    if seconds <= 0:
        return "0s"
    parts = []
    remaining = seconds
    for unit in UNIT_ORDER:
        amount, remaining = divmod(remaining, UNIT_SECONDS[unit])
        if amount:
            parts.append(f"{amount}{unit}")
    return "".join(parts)
