"""
Settings for querydispatch, read from the environment (and an optional .env file).
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Retry defaults used when no RetryPolicy is passed to a dispatch call
    DISPATCH_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    DISPATCH_RETRY_SLEEP_SECONDS: float = Field(default=1.0, ge=0)
    # Worker count for thread_map() when max_workers is not given
    DISPATCH_MAX_WORKERS: int = Field(default=4, ge=1)

    EXTERNAL_DB_CONNECT_TIMEOUT: int = 10
    # Seconds; None or <= 0 disables the per-statement timeout
    EXTERNAL_DB_STATEMENT_TIMEOUT: float | None = None

    LOG_LEVEL: str = "INFO"


settings = Settings()


def configure_logging(level: str | int | None = None) -> None:
    """Install a timestamped root handler. ``level`` defaults to ``settings.LOG_LEVEL``."""
    logging.basicConfig(level=level or settings.LOG_LEVEL, format=LOG_FORMAT)
