import io
import logging
from datetime import timezone

import pytest

from kanlog import LogEngine, core
from kanlog.config import LOGGING_SERVICE_HOST_ENV, LOGGING_SERVICE_PORT_ENV

FIXED_NS = 1_700_000_000_123_456_789


@pytest.fixture
def fixed_ns() -> int:
    return FIXED_NS


@pytest.fixture
def fixed_time() -> str:
    """``FIXED_NS`` rendered as RFC3339 (UTC)."""
    return "2023-11-14T22:13:20.123456789Z"


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def make_engine(stream):
    """Factory for engines writing to ``stream`` with a fixed clock and UTC timestamps."""

    def factory(**kwargs) -> LogEngine:
        kwargs.setdefault("stream", stream)
        kwargs.setdefault("tz", timezone.utc)
        kwargs.setdefault("clock", lambda: FIXED_NS)
        return LogEngine(**kwargs)

    return factory


@pytest.fixture
def engine(make_engine) -> LogEngine:
    return make_engine()


@pytest.fixture
def default_engine(engine):
    """Temporarily install ``engine`` as the process-wide default."""
    previous = core.set_engine(engine)
    yield engine
    core.set_engine(previous)


@pytest.fixture(autouse=True)
def clear_fluentbit_env(monkeypatch):
    monkeypatch.delenv(LOGGING_SERVICE_HOST_ENV, raising=False)
    monkeypatch.delenv(LOGGING_SERVICE_PORT_ENV, raising=False)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)
