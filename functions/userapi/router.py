"""
Path/method dispatch shared by the listener and the gateway handler.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from starlette.routing import compile_path

from userapi import handlers
from userapi.errors import ApiError
from userapi.messages import (
    COMMON_HEADERS,
    CORS_HEADERS,
    HttpMethod,
    Request,
    Response,
    error_response,
)
from userapi.repository import UserRepository

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]

ROOT_PATH = "/"
HEALTH_PATH = "/health"
USERS_PATH = "/users"
USERS_ID_PATH = "/users/{id}"


@dataclass
class Route:
    method: HttpMethod
    pattern: str
    handler: Handler
    regex: re.Pattern = field(init=False, repr=False)

    def __post_init__(self):
        # {name} binds one non-empty path segment.
        self.regex, _, _ = compile_path(self.pattern)

    def match(self, method: str, path: str) -> Optional[dict[str, str]]:
        if method != self.method.value:
            return None
        found = self.regex.match(path)
        if found is None:
            return None
        return found.groupdict()


class Router:
    """Routes canonical requests to handlers and always returns a response."""

    def __init__(self, repo: UserRepository):
        self.repo = repo
        users = handlers.UserHandler(repo)
        self.routes: list[Route] = [
            Route(HttpMethod.GET, ROOT_PATH, handlers.root),
            Route(HttpMethod.GET, HEALTH_PATH, handlers.health),
            Route(HttpMethod.POST, USERS_PATH, users.create),
            Route(HttpMethod.GET, USERS_ID_PATH, users.get),
            Route(HttpMethod.GET, USERS_PATH, users.list),
            Route(HttpMethod.PUT, USERS_ID_PATH, users.update),
            Route(HttpMethod.DELETE, USERS_ID_PATH, users.delete),
        ]

    def resolve(self, request: Request) -> Optional[tuple[Route, dict[str, str]]]:
        for route in self.routes:
            params = route.match(request.method, request.path)
            if params is not None:
                return route, params
        return None

    def dispatch(self, request: Request) -> Response:
        if request.method == HttpMethod.OPTIONS.value:
            return Response(status_code=200, headers=dict(CORS_HEADERS))

        response = self._handle(request)
        # Handler-set headers win over the defaults.
        for key, value in COMMON_HEADERS.items():
            response.headers.setdefault(key, value)
        logger.info("%s %s -> %d", request.method, request.path, response.status_code)
        return response

    def _handle(self, request: Request) -> Response:
        resolved = self.resolve(request)
        if resolved is None:
            return error_response(404, "not found")

        route, params = resolved
        request = replace(request, path_params=params)
        try:
            return route.handler(request)
        except ApiError as exc:
            if exc.status_code >= 500:
                logger.error("Error processing request: %s", exc.message, exc_info=exc)
            else:
                logger.warning("Error processing request: %s", exc.message)
            return error_response(exc.status_code, exc.message)
        except Exception as exc:
            logger.exception("Unhandled error processing %s %s", request.method, request.path)
            return error_response(500, str(exc) or exc.__class__.__name__)
