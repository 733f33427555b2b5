"""
Configuration and settings for the user records API.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for both run modes.

    Field names map to upper-cased environment variables (``LOCAL_SERVER``,
    ``PORT``, ``DYNAMODB_TABLE_NAME``...). A missing ``.env`` file is fine.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Run mode: persistent listener when true, single invocation otherwise.
    local_server: bool = Field(default=False)

    # Listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    shutdown_timeout_seconds: float = Field(default=5.0)

    # DynamoDB
    aws_region: str = Field(default="us-east-1")
    dynamodb_table_name: Optional[str] = Field(default=None)
    dynamodb_endpoint_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


LOG_FORMAT = "%(name)s %(levelname)s %(asctime)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the log format and level.

    ``basicConfig`` is a no-op when the host (e.g. the Lambda runtime) has
    already attached a root handler, so the level is also set directly.
    """
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    logging.getLogger().setLevel(resolved)
