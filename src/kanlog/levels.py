"""
Log levels.

Values follow the standard ``logging`` module so structlog's filtering
bound logger can compare them directly.
"""

from __future__ import annotations

import logging
from enum import IntEnum


class Level(IntEnum):
    """Severity of a log entry (DEBUG < INFO < WARNING < ERROR)."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def parse(cls, value: Level | int | str) -> Level:
        """Resolve a level from an enum member, a numeric value or a name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> Level:
        """Map a stdlib ``LogRecord.levelno`` onto the nearest level at or below it."""
        for level in sorted(cls, reverse=True):
            if levelno >= level:
                return level
        return cls.DEBUG
