"""
Log formatters.

Both formatters are structlog renderers: they receive the event dict built by
the engine (``event``, ``level``, ``timestamp`` in nanoseconds and ``fields``)
and return the line to write.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping

import orjson
import structlog
from structlog.typing import EventDict, WrappedLogger

from .render import Renderable, public_attrs, text_of


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def json_default(value: Any) -> Any:
    """Fallback encoder for values orjson has no native form for.

    Raises ``TypeError`` for anything else, which drops the entry.
    """
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (Decimal, PurePath)):
        return str(value)
    if isinstance(value, Renderable):
        return value.log_text()
    if isinstance(value, BaseException):
        return str(value)
    attrs = {k: v for k, v in (public_attrs(value) or {}).items() if not k.startswith("_")}
    if attrs:
        return attrs
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def orjson_dumps(v: Any, *, default: Any = json_default) -> bytes:
    """JSON serialization using orjson, keys sorted."""
    return orjson.dumps(
        v,
        default=default,
        option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_SORT_KEYS,
    )


# =============================================================================
# Timestamps
# =============================================================================


def format_timestamp(timestamp_ns: int, tz: tzinfo | None = None) -> str:
    """RFC3339 with nanoseconds, trailing zeros trimmed (``2006-01-02T15:04:05.999999999Z07:00``).

    ``tz=None`` renders in the local timezone.
    """
    seconds, nanos = divmod(timestamp_ns, 1_000_000_000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone(tz)

    text = dt.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{nanos:09d}".rstrip("0")
    if fraction:
        text += "." + fraction

    offset = dt.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def prefix_field_clashes(fields: Mapping[str, Any], reserved: tuple[str, ...]) -> dict[str, Any]:
    """Rename fields that collide with the formatter's own keys to ``fields.<key>``."""
    return {(f"fields.{k}" if k in reserved else k): v for k, v in fields.items()}


# =============================================================================
# Text Formatter
# =============================================================================


class TextFormatter:
    """``key=value`` line renderer (``time="..." level=info msg=... k=v``)."""

    TIME_KEY = "time"
    LEVEL_KEY = "level"
    MESSAGE_KEY = "msg"

    _NEEDS_QUOTING = re.compile(r"[^A-Za-z0-9\-._/@^+]")

    def __init__(self, *, tz: tzinfo | None = None, sort_keys: bool = True):
        self._tz = tz
        self._sort_keys = sort_keys

    @classmethod
    def _quote(cls, value: Any) -> str:
        text = text_of(value)
        if not cls._NEEDS_QUOTING.search(text):
            return text
        try:
            return orjson.dumps(text).decode()
        except orjson.JSONEncodeError:
            return repr(text)

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        reserved = (self.TIME_KEY, self.LEVEL_KEY, self.MESSAGE_KEY)
        fields = prefix_field_clashes(event_dict.get("fields") or {}, reserved)

        pairs = [
            (self.TIME_KEY, format_timestamp(event_dict["timestamp"], self._tz)),
            (self.LEVEL_KEY, event_dict.get("level", method_name)),
        ]
        message = event_dict.get("event") or ""
        if message:
            pairs.append((self.MESSAGE_KEY, message))

        keys = sorted(fields) if self._sort_keys else list(fields)
        pairs.extend((k, fields[k]) for k in keys)
        return " ".join(f"{k}={self._quote(v)}" for k, v in pairs)


# =============================================================================
# JSON Formatter
# =============================================================================

JSON_RESERVED_KEYS = ("Message", "Level", "Time")


def entry_document(event_dict: EventDict, tz: tzinfo | None = None) -> dict[str, Any]:
    """Flatten an entry into the JSON document shape (``Message``, ``Level``, ``Time`` + fields)."""
    fields = prefix_field_clashes(event_dict.get("fields") or {}, JSON_RESERVED_KEYS)
    data: dict[str, Any] = {k: (str(v) if isinstance(v, BaseException) else v) for k, v in fields.items()}
    data["Message"] = event_dict.get("event") or ""
    data["Level"] = event_dict.get("level", "")
    data["Time"] = format_timestamp(event_dict["timestamp"], tz)
    return data


def entry_to_json(event_dict: EventDict, tz: tzinfo | None = None) -> bytes | None:
    """Encode an entry as a newline-terminated JSON document; ``None`` if it cannot be encoded."""
    try:
        return orjson_dumps(entry_document(event_dict, tz)) + b"\n"
    except orjson.JSONEncodeError:
        return None


class JSONFormatter:
    """One JSON object per line. Field values are encoded as-is."""

    def __init__(self, *, tz: tzinfo | None = None):
        self._tz = tz

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        try:
            return orjson_dumps(entry_document(event_dict, self._tz)).decode()
        except orjson.JSONEncodeError:
            raise structlog.DropEvent from None
