"""
Process entry point.

The run mode is resolved once at startup. Both modes build the repository and
router the same way and differ only in the transport that feeds the router:
a uvicorn listener, or one gateway event per invocation.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import Enum
from typing import Optional, Sequence

import uvicorn

from userapi.app import create_app
from userapi.config import Settings, configure_logging, get_settings
from userapi.dependencies import get_router
from userapi.gateway import invoke_once
from userapi.router import Router

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    SERVER = "server"
    INVOCATION = "invocation"


def resolve_mode(settings: Settings) -> Mode:
    return Mode.SERVER if settings.local_server else Mode.INVOCATION


def build_server(router: Router, settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        create_app(router),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )
    return uvicorn.Server(config)


def serve(router: Router, settings: Settings) -> None:
    """
    Listen until SIGINT/SIGTERM. uvicorn stops accepting connections on the
    signal and gives in-flight requests up to the configured grace period.
    """
    server = build_server(router, settings)
    logger.info("Local server listening on %s:%d", settings.host, settings.port)
    server.run()
    logger.info("Server gracefully stopped.")


def _read_event(path: Optional[str]) -> dict:
    if path and path != "-":
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return json.load(sys.stdin)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="User records API")
    parser.add_argument(
        "--event",
        type=str,
        default=None,
        help="Gateway event JSON file for a single invocation (default: stdin)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    mode = resolve_mode(settings)
    logger.info("Starting in %s mode", mode.value)
    router = get_router()

    if mode is Mode.SERVER:
        serve(router, settings)
        return 0

    try:
        event = _read_event(args.event)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read gateway event: %s", exc)
        return 1
    result = invoke_once(router, event)
    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
