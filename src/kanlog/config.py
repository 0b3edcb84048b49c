"""
Logging Configuration.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .formatters import OutputFormat

# Names of environment variables locating the Fluent Bit collector.
LOGGING_SERVICE_HOST_ENV = "LOGGING_SVC_SERVICE_HOST"
LOGGING_SERVICE_PORT_ENV = "LOGGING_SVC_SERVICE_PORT_LOGGING"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LoggingSettings(BaseSettings):
    """Logging infrastructure configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum emitted level")
    format: OutputFormat = Field(default=OutputFormat.TEXT, description="Output format (text, json)")
    sinks: str = Field(default="stderr", description="Comma-separated sink names (stderr, fluentbit)")
    utc: bool = Field(default=False, description="Render timestamps in UTC instead of local time")
    capture_stdlib: bool = Field(default=False, description="Route stdlib logging records through kanlog")


class FluentbitSettings(BaseSettings):
    """Fluent Bit collector address, as published by the cluster service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    host: Optional[str] = Field(default=None, validation_alias=LOGGING_SERVICE_HOST_ENV)
    port: Optional[int] = Field(default=None, validation_alias=LOGGING_SERVICE_PORT_ENV)
