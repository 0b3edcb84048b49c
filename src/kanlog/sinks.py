"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import socket
import sys
import threading
import time
from abc import ABC, abstractmethod
from datetime import tzinfo
from enum import Enum
from typing import Callable, TextIO

from structlog.typing import EventDict

from .formatters import entry_to_json


class OutputSink(str, Enum):
    STDERR = "stderr"
    FLUENTBIT = "fluentbit"


# =============================================================================
# Primary Output
# =============================================================================


class StreamWriter:
    """structlog logger writing rendered lines to a text stream.

    Write failures are dropped; logging must not break the caller.
    """

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stderr
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream

    def msg(self, message: str) -> None:
        with self._lock:
            try:
                self._stream.write(message + "\n")
                self._stream.flush()
            except (OSError, ValueError):
                pass

    log = debug = info = warning = error = critical = msg


# =============================================================================
# Hooks (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """A secondary destination receiving every entry before it is formatted."""

    @abstractmethod
    def emit(self, event_dict: EventDict) -> None:
        """Emit a log event to the sink."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class FluentbitSink(BaseSink):
    """Ships entries to a Fluent Bit TCP input as newline-delimited JSON.

    One connection is kept open across entries. A write on a stale connection
    is retried once over a fresh one. After a failed dial, entries are dropped
    for ``retry_after`` seconds so an absent collector costs at most one
    connect timeout per window.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float = 0.5,
        retry_after: float = 5.0,
        tz: tzinfo | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._address = (host, int(port))
        self._timeout = timeout
        self._retry_after = retry_after
        self._tz = tz
        self._clock = clock
        self._lock = threading.Lock()
        self._conn: socket.socket | None = None
        self._down_until = 0.0

    @property
    def address(self) -> tuple[str, int]:
        return self._address

    def _connect(self) -> socket.socket:
        try:
            self._conn = socket.create_connection(self._address, timeout=self._timeout)
        except OSError:
            self._down_until = self._clock() + self._retry_after
            raise
        return self._conn

    def _disconnect(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    def _send(self, payload: bytes) -> None:
        conn = self._conn or self._connect()
        try:
            conn.sendall(payload)
        except OSError:
            self._disconnect()
            raise

    def emit(self, event_dict: EventDict) -> None:
        payload = entry_to_json(event_dict, self._tz)
        if payload is None:
            return
        with self._lock:
            reused = self._conn is not None
            if not reused and self._clock() < self._down_until:
                return
            try:
                self._send(payload)
            except OSError:
                if not reused:
                    raise
                self._send(payload)

    def close(self) -> None:
        with self._lock:
            self._disconnect()

    def __repr__(self) -> str:
        host, port = self._address
        return f"FluentbitSink({host}:{port})"
