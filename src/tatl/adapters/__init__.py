"""Adapters - I/O implementations of ports."""

from .json_store import JsonStore
from .system_clock import SystemClock

__all__ = [
    "JsonStore",
    "SystemClock",
]
