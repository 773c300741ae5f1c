"""Clock interface."""

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of "now" for the core, which never reads a global clock."""

    def now_local(self) -> datetime:
        """Current time, aware, in the user's timezone."""
        ...

    def now_utc(self) -> datetime:
        """Current time, aware, in UTC."""
        ...
