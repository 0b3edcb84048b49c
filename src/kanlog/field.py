"""Field sets and their propagation context.

A ``FieldContext`` carries an immutable, append-only sequence of fields along
a call chain. Adding a field never mutates an existing context; it returns a
new one, so a context can be shared freely between threads and tasks.

The module also keeps an optional ``contextvars`` slot so request handlers can
install a context once and let nested code pick it up with ``current()``.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Iterable, Iterator, Mapping, NamedTuple

# Call-site field mapping accepted by ``Logger.print``.
M = dict[str, Any]


class Field(NamedTuple):
    key: str
    value: Any


class Fields(tuple):
    """Ordered, immutable sequence of ``Field`` entries."""

    __slots__ = ()

    def __new__(cls, items: Iterable[tuple[str, Any]] = ()) -> Fields:
        return super().__new__(cls, (Field(str(k), v) for k, v in items))

    def add(self, key: str, value: Any) -> Fields:
        return Fields((*self, Field(key, value)))

    def extend(self, values: Mapping[str, Any]) -> Fields:
        return Fields((*self, *(Field(k, v) for k, v in values.items())))

    def to_dict(self) -> M:
        """Flatten to a mapping; later fields override earlier ones."""
        return {f.key: f.value for f in self}


@dataclass(frozen=True)
class FieldContext:
    """Propagation carrier for a field set."""

    fields: Fields = dataclass_field(default_factory=Fields)

    def with_field(self, key: str, value: Any) -> FieldContext:
        return FieldContext(self.fields.add(key, value))

    def with_fields(self, values: Mapping[str, Any]) -> FieldContext:
        return FieldContext(self.fields.extend(values))


def new(key: str, value: Any) -> Fields:
    """Build a single-entry field set."""
    return Fields().add(key, value)


def add(ctx: FieldContext | None, key: str, value: Any) -> FieldContext:
    """Return a context carrying ``ctx``'s fields plus ``key=value``."""
    return (ctx or FieldContext()).with_field(key, value)


def add_map(ctx: FieldContext | None, values: Mapping[str, Any]) -> FieldContext:
    """Return a context carrying ``ctx``'s fields plus every entry of ``values``."""
    return (ctx or FieldContext()).with_fields(values)


def from_context(ctx: Any) -> Fields | None:
    """Read the field set attached to ``ctx``.

    Accepts a ``FieldContext`` or any object exposing a ``fields`` attribute
    holding a ``Fields``. Anything else yields ``None``.
    """
    if ctx is None:
        return None
    fields = getattr(ctx, "fields", None)
    if isinstance(fields, Fields):
        return fields
    return None


# =============================================================================
# Ambient context (contextvars)
# =============================================================================

_CURRENT: ContextVar[FieldContext | None] = ContextVar("kanlog_field_context", default=None)


def current() -> FieldContext | None:
    """Return the context installed for the running task, if any."""
    return _CURRENT.get()


@contextmanager
def scoped(ctx: FieldContext) -> Iterator[FieldContext]:
    """Install ``ctx`` as the current context for the duration of a block."""
    token = _CURRENT.set(ctx)
    try:
        yield ctx
    finally:
        _CURRENT.reset(token)
