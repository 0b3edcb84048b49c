"""
Entry renderer: expands structured field values into text.

Each field value is classified once as TEXT, ERROR or STRUCTURED:

- ERROR values become their message, with the trace moved to ``stackTrace``.
- TEXT values (strings, ``Renderable`` objects, types with their own
  ``__str__``) pass through untouched.
- STRUCTURED values are deep-rendered with ``render()``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Set
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable

from structlog.typing import EventDict, WrappedLogger

from .errors import format_error

STACK_TRACE_KEY = "stackTrace"

# Keys whose values keep the upstream time formatting.
TIMESTAMP_KEYS = frozenset({"time", "fields.time"})

_SCALARS = (type(None), bool, int, float, complex, bytes, bytearray)


@runtime_checkable
class Renderable(Protocol):
    """Types that supply their own log text."""

    def log_text(self) -> str: ...


class FieldKind(Enum):
    TEXT = auto()
    ERROR = auto()
    STRUCTURED = auto()


def classify(value: Any) -> FieldKind:
    if isinstance(value, BaseException):
        return FieldKind.ERROR
    if isinstance(value, str) or isinstance(value, Renderable):
        return FieldKind.TEXT
    if type(value).__str__ is not object.__str__:
        return FieldKind.TEXT
    return FieldKind.STRUCTURED


def text_of(value: Any) -> str:
    """Plain text for a value that is written as-is."""
    if isinstance(value, str):
        return value
    if isinstance(value, Renderable):
        return value.log_text()
    return str(value)


# =============================================================================
# Deep Rendering
# =============================================================================


class _Renderer:
    def __init__(self) -> None:
        self._active: set[int] = set()

    def render(self, value: Any) -> str:
        if isinstance(value, str) or isinstance(value, _SCALARS):
            return repr(value)
        if isinstance(value, Renderable):
            return value.log_text()
        if isinstance(value, Enum):
            return f"{type(value).__name__}.{value.name}"

        marker = id(value)
        if marker in self._active:
            return f"<recursive {type(value).__name__}>"
        self._active.add(marker)
        try:
            return self._render_compound(value)
        finally:
            self._active.discard(marker)

    def _render_compound(self, value: Any) -> str:
        cls = type(value)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            attrs = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            return self._render_attrs(cls.__name__, attrs)
        if isinstance(value, Mapping):
            items = sorted((self.render(k), self.render(v)) for k, v in value.items())
            body = "{" + ", ".join(f"{k}: {v}" for k, v in items) + "}"
            return body if cls is dict else f"{cls.__name__}{body}"
        if isinstance(value, (list, tuple)):
            parts = [self.render(v) for v in value]
            if isinstance(value, list):
                body = "[" + ", ".join(parts) + "]"
                return body if cls is list else f"{cls.__name__}{body}"
            if hasattr(value, "_fields"):
                return self._render_attrs(cls.__name__, value._asdict())
            body = "(" + ", ".join(parts) + ("," if len(parts) == 1 else "") + ")"
            return body if cls is tuple else f"{cls.__name__}{body}"
        if isinstance(value, Set):
            if not value:
                return f"{cls.__name__}()"
            body = "{" + ", ".join(sorted(self.render(v) for v in value)) + "}"
            return body if cls is set else f"{cls.__name__}({body})"
        if cls.__repr__ is not object.__repr__:
            return repr(value)
        attrs = public_attrs(value)
        if attrs is not None:
            return self._render_attrs(cls.__name__, attrs)
        return repr(value)

    def _render_attrs(self, name: str, attrs: Mapping[str, Any]) -> str:
        body = ", ".join(f"{k}={self.render(v)}" for k, v in attrs.items())
        return f"{name}({body})"


def public_attrs(value: Any) -> dict[str, Any] | None:
    attrs = getattr(value, "__dict__", None)
    if isinstance(attrs, dict):
        return dict(attrs)
    slots: dict[str, Any] = {}
    for klass in type(value).__mro__:
        for name in getattr(klass, "__slots__", ()):
            if name in ("__dict__", "__weakref__") or name in slots:
                continue
            if hasattr(value, name):
                slots[name] = getattr(value, name)
    return slots or None


def render(value: Any) -> str:
    """Render ``value`` as readable text, expanding nested containers and objects."""
    try:
        return _Renderer().render(value)
    except Exception:
        return f"<unrenderable {type(value).__name__}>"


# =============================================================================
# Structlog Processor
# =============================================================================


def render_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Expand the entry's fields in place before the text formatter runs."""
    fields = event_dict.get("fields")
    if not fields:
        return event_dict

    rendered: dict[str, Any] = {}
    for key, value in fields.items():
        kind = classify(value)
        if kind is FieldKind.ERROR:
            message, stack_trace = format_error(value)
            rendered[key] = message
            rendered[STACK_TRACE_KEY] = stack_trace
        elif kind is FieldKind.TEXT or key in TIMESTAMP_KEYS:
            rendered[key] = value
        else:
            rendered[key] = render(value)
    event_dict["fields"] = rendered
    return event_dict
