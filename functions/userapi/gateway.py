"""
Adapter between API Gateway proxy events and the canonical request/response.

Handles REST API (payload v1) and HTTP API (payload v2) events. Odd-shaped
events never raise here; missing pieces default to empty values and any body
problem is left for the handler to report.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import parse_qsl

from userapi.messages import Request, Response, first_values
from userapi.router import Router

logger = logging.getLogger(__name__)


def _is_v2(event: dict) -> bool:
    return event.get("version") == "2.0" or "rawPath" in event


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _decode_body(event: dict) -> str:
    body = event.get("body")
    if body is None:
        return ""
    if not isinstance(body, str):
        body = str(body)
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            logger.warning("Event body flagged as base64 but could not be decoded")
            return body
    return body


def request_from_event(event: dict) -> Request:
    """Build a canonical ``Request`` from a gateway proxy event."""
    event = _as_dict(event)
    if _is_v2(event):
        http_context = _as_dict(_as_dict(event.get("requestContext")).get("http"))
        method = http_context.get("method") or ""
        path = event.get("rawPath") or http_context.get("path") or "/"
        # HTTP API joins repeated headers with commas; values are kept whole
        # since commas are also legal inside a single value.
        headers = first_values(event.get("headers"))
        raw_query = event.get("rawQueryString")
        query = first_values(
            parse_qsl(raw_query if isinstance(raw_query, str) else "", keep_blank_values=True)
        )
    else:
        method = event.get("httpMethod") or ""
        path = event.get("path") or "/"
        headers = first_values(event.get("multiValueHeaders")) or first_values(
            event.get("headers")
        )
        query = first_values(event.get("multiValueQueryStringParameters")) or first_values(
            event.get("queryStringParameters")
        )

    return Request(
        method=str(method).upper(),
        path=str(path),
        headers=headers,
        query_params=query,
        path_params=first_values(event.get("pathParameters")),
        body=_decode_body(event),
    )


def response_to_result(response: Response) -> dict[str, Any]:
    """Render a canonical ``Response`` as a gateway proxy result."""
    return {
        "statusCode": response.status_code,
        "headers": dict(response.headers),
        "multiValueHeaders": {},
        "body": response.body,
        "isBase64Encoded": response.is_base64_encoded,
    }


def invoke_once(router: Router, event: dict) -> dict[str, Any]:
    """Run one gateway event through the router and return the proxy result."""
    return response_to_result(router.dispatch(request_from_event(event)))
