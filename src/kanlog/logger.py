"""
Logger facade.

Handles are immutable: ``with_context`` and ``with_error`` return a new handle,
so one handle can be shared across threads and tasks without aliasing.

Usage:
    import kanlog
    from kanlog import field

    ctx = field.add(None, "request_id", rid)
    kanlog.info().with_context(ctx).print("request accepted", {"path": path})
    kanlog.error().with_error(err).print("request failed")
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping

from . import core
from .field import from_context
from .levels import Level

ERROR_KEY = "error"


@dataclass(frozen=True)
class Logger:
    """Per-call-site handle bound to a level, and optionally a context, an error and an engine."""

    level: Level = Level.INFO
    context: Any = None
    err: BaseException | None = None
    engine: core.LogEngine | None = None

    def with_context(self, ctx: Any) -> Logger:
        return dataclasses.replace(self, context=ctx)

    def with_error(self, err: BaseException | None) -> Logger:
        return dataclasses.replace(self, err=err)

    def collect(self, *fields: Mapping[str, Any]) -> dict[str, Any]:
        """Merge context fields, call-site fields (in order) and the bound error."""
        merged: dict[str, Any] = {}
        ctx_fields = from_context(self.context)
        if ctx_fields is not None:
            merged.update(ctx_fields.to_dict())
        for f in fields:
            merged.update(f)
        if self.err is not None:
            merged[ERROR_KEY] = self.err
        return merged

    def print(self, msg: str, *fields: Mapping[str, Any]) -> None:
        """Emit ``msg`` at the bound level with the merged fields."""
        engine = self.engine or core.get_engine()
        engine.emit(self.level, msg, self.collect(*fields))


def debug() -> Logger:
    return Logger(level=Level.DEBUG)


def info() -> Logger:
    return Logger(level=Level.INFO)


def warning() -> Logger:
    return Logger(level=Level.WARNING)


def error() -> Logger:
    return Logger(level=Level.ERROR)


# Shortcuts for the most common case, ``info().<method>(...)``.


def print(msg: str, *fields: Mapping[str, Any]) -> None:  # noqa: A001
    info().print(msg, *fields)


def with_context(ctx: Any) -> Logger:
    return info().with_context(ctx)


def with_error(err: BaseException | None) -> Logger:
    return info().with_error(err)
