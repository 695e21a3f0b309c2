"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from collections.abc import Sequence
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqsdo.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_REGION,
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    DEFAULT_WAIT_TIME_SECONDS,
    SQS_MAX_BATCH_SIZE,
    SQS_MAX_VISIBILITY_TIMEOUT,
    SQS_MAX_WAIT_TIME_SECONDS,
)
from sqsdo.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Consumer settings, fixed for the lifetime of the process."""

    model_config = SettingsConfigDict(
        env_prefix="SQSDO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Queue
    queue_url: str | None = None
    region: str = DEFAULT_REGION
    aws_endpoint_url: str | None = None

    # Flow control
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1, le=SQS_MAX_BATCH_SIZE)
    wait_time_seconds: int = Field(
        default=DEFAULT_WAIT_TIME_SECONDS, ge=0, le=SQS_MAX_WAIT_TIME_SECONDS
    )
    # None keeps the queue's own visibility timeout
    visibility_timeout: int | None = Field(
        default=None, ge=0, le=SQS_MAX_VISIBILITY_TIMEOUT
    )
    shutdown_timeout_seconds: float = Field(
        default=DEFAULT_SHUTDOWN_TIMEOUT_SECONDS, ge=0
    )

    # Observability
    verbose: bool = False
    log_level: str = "WARNING"
    log_format: str = "console"  # json or console
    metrics_port: int | None = None
    otel_exporter_otlp_endpoint: str | None = None
    otel_service_name: str = "sqsdo"

    @property
    def effective_log_level(self) -> str:
        """Verbose mode always logs at DEBUG."""
        return "DEBUG" if self.verbose else self.log_level.upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def check_configuration(settings: Settings, command: Sequence[str]) -> None:
    """
    Verify the consumer has everything it needs before any loop starts.

    Args:
        settings: The consumer settings.
        command: The handler program and its arguments.

    Raises:
        ConfigurationError: If the queue URL or the handler command is missing.
    """
    if not settings.queue_url:
        raise ConfigurationError("no queue given, pass -q or set SQSDO_QUEUE_URL")
    if not command or not command[0]:
        raise ConfigurationError("no handler command given after --")
