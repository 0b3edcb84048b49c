"""
kanlog: structured logging facade.

Provides leveled, field-annotated logging with:
- text (key=value) or JSON output
- stderr output plus an optional Fluent Bit collector hook
- context-carried field sets
- error rendering that splits a message from its stack trace

Library: structlog processor chain + orjson serialization + pydantic-settings.
"""

from . import errors, field
from .core import (
    LogEngine,
    configure_logging,
    get_engine,
    set_engine,
    set_formatter,
    set_level,
    set_output,
)
from .formatters import OutputFormat
from .levels import Level
from .logger import Logger, debug, error, info, print, warning, with_context, with_error
from .render import FieldKind, Renderable
from .sinks import OutputSink

__all__ = [
    "configure_logging",
    "debug",
    "error",
    "errors",
    "field",
    "FieldKind",
    "get_engine",
    "info",
    "Level",
    "LogEngine",
    "Logger",
    "OutputFormat",
    "OutputSink",
    "print",
    "Renderable",
    "set_engine",
    "set_formatter",
    "set_level",
    "set_output",
    "warning",
    "with_context",
    "with_error",
]
