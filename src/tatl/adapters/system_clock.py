"""Wall-clock adapter."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


class SystemClock:
    """
    System clock in a configured timezone.

    Implements Clock protocol.
    """

    def __init__(self, tz_name: str = "UTC"):
        self.tz = ZoneInfo(tz_name)

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    def now_local(self) -> datetime:
        return self.now_utc().astimezone(self.tz)
