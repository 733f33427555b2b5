"""
Dependency wiring shared by both run modes.
"""

from __future__ import annotations

import logging
from typing import Optional

from userapi.config import Settings, get_settings
from userapi.repository import (
    DynamoDbUserRepository,
    InMemoryUserRepository,
    UserRepository,
)
from userapi.router import Router

logger = logging.getLogger(__name__)

_router: Router | None = None


def build_repository(settings: Settings) -> UserRepository:
    """Pick the storage backend once, from configuration."""
    if settings.use_in_memory_backends or not settings.dynamodb_table_name:
        logger.info("Using in-memory user repository")
        return InMemoryUserRepository()

    logger.info(
        "Using DynamoDB user repository (table=%s, region=%s)",
        settings.dynamodb_table_name,
        settings.aws_region,
    )
    return DynamoDbUserRepository.from_settings(
        table_name=settings.dynamodb_table_name,
        region=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint_url,
    )


def build_router(settings: Optional[Settings] = None) -> Router:
    settings = settings or get_settings()
    return Router(build_repository(settings))


def get_router() -> Router:
    """
    Return a singleton router so repository state persists across requests.
    """
    global _router
    if _router:
        return _router

    _router = build_router()
    return _router


def reset_router() -> None:
    """Drop the cached router (useful in tests)."""
    global _router
    _router = None
