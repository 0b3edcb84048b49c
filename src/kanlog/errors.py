"""
Error types and the error formatter.

- Configuration errors raised by ``set_output`` / ``set_formatter``.
- ``StackError``: an exception that records the stack where it was created and
  embeds it in its detailed representation.
- ``format_error``: splits an error into its message and stack trace.
"""

from __future__ import annotations

import traceback

TRACEBACK_HEADER = "Traceback (most recent call last):\n"

# =============================================================================
# Configuration Errors
# =============================================================================


class LogConfigError(ValueError):
    """Invalid logging configuration."""


class SinkConfigError(LogConfigError):
    """A sink is missing the settings it needs."""


class UnsupportedSinkError(LogConfigError):
    """Unknown output sink."""


class UnsupportedFormatError(LogConfigError):
    """Unknown output format."""


# =============================================================================
# Stack-carrying Errors
# =============================================================================


def _callers(skip: int = 2) -> list[str]:
    # Drops this frame and the constructor that called it.
    return traceback.format_stack()[:-skip]


def _raised_at(err: BaseException, skip: int = 3) -> list[str]:
    # Outer frames up to the handler, then the frames ``err`` unwound through.
    return traceback.format_stack()[:-skip] + traceback.format_tb(err.__traceback__)


class StackError(Exception):
    """Exception carrying the stack recorded at construction time."""

    def __init__(self, message: str, cause: BaseException | None = None, stack: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.__cause__ = cause
        self.stack = stack if stack is not None else _callers()

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        if not self.message:
            return str(self.cause)
        return f"{self.message}: {self.cause}"

    def format_detail(self) -> str:
        """Message followed by the recorded stack."""
        return f"{self}\n{TRACEBACK_HEADER}{''.join(self.stack)}".rstrip("\n")


def new(message: str) -> StackError:
    """Create an error recording the caller's stack."""
    return StackError(message, stack=_callers())


def wrap(err: BaseException | None, message: str) -> StackError | None:
    """Annotate ``err`` with ``message``; keeps the stack of ``err`` if it has one."""
    if err is None:
        return None
    if isinstance(err, StackError):
        stack = err.stack
    elif err.__traceback__ is not None:
        stack = _raised_at(err)
    else:
        stack = _callers()
    return StackError(message, cause=err, stack=stack)


def with_stack(err: BaseException | None) -> StackError | None:
    """Attach the caller's stack to ``err`` without changing its message."""
    if err is None:
        return None
    stack = _raised_at(err) if err.__traceback__ is not None else _callers()
    return StackError("", cause=err, stack=stack)


# =============================================================================
# Error Formatter
# =============================================================================


def detail(err: BaseException) -> str:
    """Detailed representation of ``err``: its message plus any embedded trace."""
    format_detail = getattr(err, "format_detail", None)
    if callable(format_detail):
        return str(format_detail())
    if err.__traceback__ is None and err.__cause__ is None and err.__context__ is None:
        return str(err)
    # format_exception walks __cause__/__context__, oldest failure first.
    chain = "".join(traceback.format_exception(err))
    return f"{err}\n{chain}".rstrip("\n")


def format_error(err: BaseException | None) -> tuple[str, str]:
    """Split ``err`` into ``(message, stack_trace)``.

    The detailed representation is split right after the first occurrence of
    the plain message. Everything before and including the match is the
    message and the remainder is the stack trace. When the plain message does
    not occur, the whole detailed text is the message and the trace is empty.
    """
    if err is None:
        return "", ""
    full = detail(err)
    short = str(err)
    if not short:
        return full, ""
    head, sep, tail = full.partition(short)
    if not sep:
        return full, ""
    return head + sep, tail
