"""
Interceptors for capturing standard library logs.
"""

from __future__ import annotations

import logging

from . import core
from .levels import Level
from .logger import Logger


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging records to a kanlog engine.
    Third-party logs then share the configured format and sinks.

    Args:
        engine: Target engine (default: the process-wide engine at emit time)
    """

    def __init__(self, engine: core.LogEngine | None = None, level: int = logging.NOTSET):
        super().__init__(level)
        self._engine = engine

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Skip our own records to avoid loops
            if record.name.startswith("kanlog"):
                return

            handle = Logger(level=Level.from_stdlib(record.levelno), engine=self._engine)
            if record.exc_info and record.exc_info[1] is not None:
                handle = handle.with_error(record.exc_info[1])
            handle.print(record.getMessage(), {"logger": record.name})
        except Exception:
            self.handleError(record)


def intercept_stdlib(engine: core.LogEngine | None = None, level: int | None = None) -> RedirectStdLibHandler:
    """Replace the root logger's handlers with a ``RedirectStdLibHandler``."""
    engine_level = (engine or core.get_engine()).level
    handler = RedirectStdLibHandler(engine)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(level if level is not None else int(engine_level))
    root_logger.addHandler(handler)
    return handler
