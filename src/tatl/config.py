"""Configuration management for tatl."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

TATL_HOME = Path(os.environ.get("TATL_HOME", Path.home() / ".tatl"))
CONFIG_FILE = TATL_HOME / "config" / "tatl.conf"
DATA_DIR = TATL_HOME / "data"

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class Config:
    """tatl configuration."""

    timezone: str = "UTC"
    data_file: str = field(default_factory=lambda: str(DATA_DIR / "tasks.json"))
    week_start_day: str = "Monday"

    def week_start_index(self) -> int:
        """Weekday index for the configured week start (Monday=0)."""
        return WEEKDAYS.index(self.week_start_day.lower())


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from tatl.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                try:
                    ZoneInfo(value)
                except (ZoneInfoNotFoundError, ValueError):
                    logger.warning(f"Unknown TIMEZONE '{value}', using {config.timezone}")
                    continue
                config.timezone = value
            case "data_file":
                config.data_file = str(Path(value).expanduser())
            case "week_start_day":
                if value.lower() not in WEEKDAYS:
                    logger.warning(f"Unknown WEEK_START_DAY '{value}', using {config.week_start_day}")
                    continue
                config.week_start_day = value
            case _:
                logger.debug(f"Ignoring unknown config key '{key}'")

    return config
