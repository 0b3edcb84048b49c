"""
Core logging engine and process-wide defaults.
"""

from __future__ import annotations

import sys
import time
from datetime import timezone, tzinfo
from typing import TYPE_CHECKING, Any, Callable, Mapping, TextIO

import structlog
from pydantic import ValidationError
from structlog.typing import EventDict, Processor, WrappedLogger

from .config import LOGGING_SERVICE_HOST_ENV, LOGGING_SERVICE_PORT_ENV, FluentbitSettings, LoggingSettings
from .errors import LogConfigError, SinkConfigError, UnsupportedFormatError, UnsupportedSinkError
from .formatters import JSONFormatter, OutputFormat, TextFormatter
from .levels import Level
from .render import render_fields
from .sinks import BaseSink, FluentbitSink, OutputSink, StreamWriter

if TYPE_CHECKING:
    from .logger import Logger


class LogEngine:
    """Owns the level, output stream, formatter and hooks of one logging pipeline.

    Entries flow through a structlog processor chain::

        add_log_level -> stamp time -> fire hooks -> [render fields] -> formatter

    The entry renderer only runs for the text format; JSON receives raw values.

    Args:
        level: Minimum level that is emitted
        fmt: Output format (text or json)
        stream: Output stream (default: stderr)
        tz: Timezone for rendered timestamps (default: local)
        clock: Returns the entry time in nanoseconds since the epoch
    """

    def __init__(
        self,
        *,
        level: Level | int | str = Level.INFO,
        fmt: OutputFormat | str = OutputFormat.TEXT,
        stream: TextIO | None = None,
        tz: tzinfo | None = None,
        clock: Callable[[], int] = time.time_ns,
    ):
        self._level = _parse_level(level)
        self._writer = StreamWriter(stream)
        self._tz = tz
        self._clock = clock
        self._hooks: list[BaseSink] = []
        self._format, self._formatter_chain = self._build_formatter(fmt)
        self._rebuild()

    # -------------------------------------------------------------------------
    # Processors
    # -------------------------------------------------------------------------

    def _stamp_time(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["timestamp"] = self._clock()
        return event_dict

    def _fire_hooks(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for hook in self._hooks:
            try:
                hook.emit(event_dict)
            except Exception:
                pass  # A failing hook must not suppress the primary output
        return event_dict

    def _build_formatter(self, fmt: OutputFormat | str) -> tuple[OutputFormat, list[Processor]]:
        try:
            fmt = OutputFormat(fmt)
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported log format: {fmt!r}") from None
        if fmt is OutputFormat.TEXT:
            return fmt, [render_fields, TextFormatter(tz=self._tz)]
        return fmt, [JSONFormatter(tz=self._tz)]

    def _rebuild(self) -> None:
        processors: list[Processor] = [
            structlog.processors.add_log_level,
            self._stamp_time,
            self._fire_hooks,
            *self._formatter_chain,
        ]
        self._logger = structlog.wrap_logger(
            self._writer,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(int(self._level)),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def level(self) -> Level:
        return self._level

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def stream(self) -> TextIO:
        return self._writer.stream

    @property
    def hooks(self) -> tuple[BaseSink, ...]:
        return tuple(self._hooks)

    def set_output(self, sink: OutputSink | str) -> None:
        """Select the output destination.

        ``STDERR`` routes the formatted lines to standard error. ``FLUENTBIT``
        additionally ships every entry to the collector located by the
        ``LOGGING_SVC_SERVICE_HOST`` / ``LOGGING_SVC_SERVICE_PORT_LOGGING``
        environment variables. Nothing changes when configuration fails.
        """
        try:
            sink = OutputSink(sink)
        except ValueError:
            raise UnsupportedSinkError("not implemented") from None

        if sink is OutputSink.STDERR:
            self._writer = StreamWriter(sys.stderr)
        else:
            self._hooks.append(self._fluentbit_hook())
        self._rebuild()

    def _fluentbit_hook(self) -> FluentbitSink:
        try:
            settings = FluentbitSettings()
        except ValidationError as exc:
            raise SinkConfigError(f"Invalid Fluentbit settings: {exc}") from exc
        if not settings.host:
            raise SinkConfigError(f"Unable to find Fluentbit host address ({LOGGING_SERVICE_HOST_ENV})")
        if settings.port is None:
            raise SinkConfigError(f"Unable to find Fluentbit logging port ({LOGGING_SERVICE_PORT_ENV})")
        return FluentbitSink(settings.host, settings.port, tz=self._tz)

    def set_formatter(self, fmt: OutputFormat | str) -> None:
        """Install the text or JSON formatter. Unknown formats raise ``UnsupportedFormatError``."""
        self._format, self._formatter_chain = self._build_formatter(fmt)
        self._rebuild()

    def set_level(self, level: Level | int | str) -> None:
        self._level = _parse_level(level)
        self._rebuild()

    def add_hook(self, hook: BaseSink) -> None:
        self._hooks.append(hook)

    def close(self) -> None:
        for hook in self._hooks:
            hook.close()
        self._hooks.clear()

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, level: Level, message: str, fields: Mapping[str, Any]) -> None:
        """Write one entry. Never raises."""
        try:
            self._logger.log(int(level), message, fields=dict(fields))
        except Exception:
            pass  # Logging must never break the calling code path

    def logger(self, level: Level | int | str = Level.INFO) -> Logger:
        """Return a facade handle bound to this engine."""
        from .logger import Logger

        return Logger(level=_parse_level(level), engine=self)

    def debug(self) -> Logger:
        return self.logger(Level.DEBUG)

    def info(self) -> Logger:
        return self.logger(Level.INFO)

    def warning(self) -> Logger:
        return self.logger(Level.WARNING)

    def error(self) -> Logger:
        return self.logger(Level.ERROR)


def _parse_level(level: Level | int | str) -> Level:
    try:
        return Level.parse(level)
    except ValueError as exc:
        raise LogConfigError(str(exc)) from exc


# =============================================================================
# Global State
# =============================================================================

_engine = LogEngine()


def get_engine() -> LogEngine:
    """Return the process-wide default engine."""
    return _engine


def set_engine(engine: LogEngine) -> LogEngine:
    """Install ``engine`` as the process-wide default; returns the previous one."""
    global _engine
    previous, _engine = _engine, engine
    return previous


def set_output(sink: OutputSink | str) -> None:
    _engine.set_output(sink)


def set_formatter(fmt: OutputFormat | str) -> None:
    _engine.set_formatter(fmt)


def set_level(level: Level | int | str) -> None:
    _engine.set_level(level)


# =============================================================================
# Configuration Logic
# =============================================================================


def configure_logging(settings: LoggingSettings | None = None) -> LogEngine:
    """
    Build the default engine from settings (``LOG_*`` environment variables by default).

    Steps:
        1. Create an engine with the configured level, format and timezone
        2. Attach each requested sink (stderr, fluentbit)
        3. Optionally route stdlib logging through the engine
        4. Install it as the process-wide default, closing the previous one
    """
    # Import interceptors here to avoid circular imports
    from .interceptors import intercept_stdlib

    settings = settings or LoggingSettings()

    engine = LogEngine(
        level=settings.level.value,
        fmt=settings.format,
        tz=timezone.utc if settings.utc else None,
    )
    for name in [s.strip().lower() for s in settings.sinks.split(",") if s.strip()]:
        engine.set_output(name)

    if settings.capture_stdlib:
        intercept_stdlib(engine)

    set_engine(engine).close()
    return engine
