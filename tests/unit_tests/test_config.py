"""
Settings and configure_logging tests.
"""

from __future__ import annotations

import logging
import sys

import pytest

from kanlog import Level, OutputFormat, core
from kanlog.config import (
    LOGGING_SERVICE_HOST_ENV,
    LOGGING_SERVICE_PORT_ENV,
    FluentbitSettings,
    LoggingSettings,
    LogLevel,
)
from kanlog.errors import SinkConfigError
from kanlog.interceptors import RedirectStdLibHandler
from kanlog.sinks import FluentbitSink


@pytest.fixture
def restore_default_engine():
    previous = core.get_engine()
    yield
    core.set_engine(previous)


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("LOG_LEVEL", "LOG_FORMAT", "LOG_SINKS", "LOG_UTC", "LOG_CAPTURE_STDLIB"):
            monkeypatch.delenv(name, raising=False)
        settings = LoggingSettings()
        assert settings.level is LogLevel.INFO
        assert settings.format is OutputFormat.TEXT
        assert settings.sinks == "stderr"
        assert settings.utc is False

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_UTC", "true")
        settings = LoggingSettings()
        assert settings.level is LogLevel.DEBUG
        assert settings.format is OutputFormat.JSON
        assert settings.utc is True

    def test_fluentbit_settings_read_service_variables(self, monkeypatch) -> None:
        monkeypatch.setenv(LOGGING_SERVICE_HOST_ENV, "10.0.0.7")
        monkeypatch.setenv(LOGGING_SERVICE_PORT_ENV, "24224")
        settings = FluentbitSettings()
        assert settings.host == "10.0.0.7"
        assert settings.port == 24224

    def test_fluentbit_settings_missing(self) -> None:
        settings = FluentbitSettings()
        assert settings.host is None
        assert settings.port is None


class TestConfigureLogging:
    def test_installs_new_default_engine(self, restore_default_engine) -> None:
        settings = LoggingSettings(level=LogLevel.DEBUG, format=OutputFormat.JSON, utc=True)
        engine = configure_and_check(settings)
        assert engine.level is Level.DEBUG
        assert engine.format is OutputFormat.JSON
        assert engine.stream is sys.stderr

    def test_fluentbit_sink(self, restore_default_engine, monkeypatch) -> None:
        monkeypatch.setenv(LOGGING_SERVICE_HOST_ENV, "10.0.0.7")
        monkeypatch.setenv(LOGGING_SERVICE_PORT_ENV, "24224")
        engine = configure_and_check(LoggingSettings(sinks="stderr, fluentbit"))
        (hook,) = engine.hooks
        assert isinstance(hook, FluentbitSink)

    def test_missing_fluentbit_env_keeps_previous_engine(self, restore_default_engine) -> None:
        previous = core.get_engine()
        with pytest.raises(SinkConfigError):
            core.configure_logging(LoggingSettings(sinks="fluentbit"))
        assert core.get_engine() is previous

    def test_capture_stdlib(self, restore_default_engine, restore_root_logger) -> None:
        configure_and_check(LoggingSettings(capture_stdlib=True))
        assert any(isinstance(h, RedirectStdLibHandler) for h in logging.getLogger().handlers)


def configure_and_check(settings: LoggingSettings):
    engine = core.configure_logging(settings)
    assert core.get_engine() is engine
    return engine


def test_utc_setting_renders_utc_timestamps(restore_default_engine, capsys) -> None:
    engine = core.configure_logging(LoggingSettings(utc=True))
    engine.info().print("when")
    err = capsys.readouterr().err
    assert 'Z" level=info msg=when' in err
