"""
Transport-independent request/response types shared by both run modes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from userapi.errors import SerializationError


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


CONTENT_TYPE = "Content-Type"
JSON_CONTENT_TYPE = "application/json"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token"
    ),
    "Access-Control-Allow-Credentials": "true",
}

# Written into every routed response for keys the handler left unset.
COMMON_HEADERS = {CONTENT_TYPE: JSON_CONTENT_TYPE, **CORS_HEADERS}


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass
class Response:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False


def json_response(status_code: int, payload: Any = None) -> Response:
    """Build a JSON response; ``None`` yields an empty body."""
    body = ""
    if payload is not None:
        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"failed to marshal response body: {exc}"
            ) from exc
    return Response(
        status_code=status_code,
        headers={CONTENT_TYPE: JSON_CONTENT_TYPE},
        body=body,
    )


def error_response(status_code: int, message: str) -> Response:
    return Response(
        status_code=status_code,
        headers={CONTENT_TYPE: JSON_CONTENT_TYPE},
        body=json.dumps({"error": message}),
    )


def first_values(items: Any) -> dict[str, str]:
    """Collapse ``name -> [values]`` pairs, keeping the first value seen.

    Anything that is not a mapping or a sequence of pairs yields nothing.
    """
    collapsed: dict[str, str] = {}
    if not items or isinstance(items, (str, bytes)):
        return collapsed
    pairs = items.items() if hasattr(items, "items") else items
    try:
        iterator = iter(pairs)
    except TypeError:
        return collapsed
    for pair in iterator:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            continue
        name, value = str(pair[0]), pair[1]
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        if name not in collapsed and value is not None:
            collapsed[name] = str(value)
    return collapsed
