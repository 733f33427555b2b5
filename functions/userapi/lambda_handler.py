"""
Lambda entry point (configure the function handler as
``userapi.lambda_handler.handler``).

The router and repository are built on cold start and reused across warm
invocations of the same execution environment. Nothing here imports the
listener stack (FastAPI/uvicorn).
"""

from __future__ import annotations

import logging
from typing import Any

from userapi.config import configure_logging, get_settings
from userapi.dependencies import get_router
from userapi.gateway import invoke_once

logger = logging.getLogger(__name__)

configure_logging(get_settings().log_level)
logger.info("Lambda cold start")


def handler(event: dict, context: Any) -> dict[str, Any]:
    return invoke_once(get_router(), event)
