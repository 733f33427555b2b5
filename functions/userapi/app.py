"""
FastAPI application for the long-running listener mode.

FastAPI only provides the socket-facing layer here: every request is turned
into a canonical ``Request`` and dispatched through the shared ``Router`` so
the listener and the gateway handler behave identically.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi import Request as HttpRequest
from fastapi import Response as HttpResponse
from starlette.concurrency import run_in_threadpool

from userapi.messages import HttpMethod, Request, Response, first_values
from userapi.router import Router

ALL_METHODS = [method.value for method in HttpMethod]


async def request_from_starlette(
    request: HttpRequest, path_params: Optional[dict[str, str]] = None
) -> Request:
    body = await request.body()
    return Request(
        method=request.method.upper(),
        path=request.url.path,
        headers=first_values(request.headers.items()),
        query_params=first_values(request.query_params.multi_items()),
        path_params=dict(path_params or {}),
        body=body.decode("utf-8", errors="replace"),
    )


def response_to_starlette(response: Response) -> HttpResponse:
    return HttpResponse(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )


def _make_endpoint(router: Router, bind_path_params: bool):
    async def endpoint(request: HttpRequest) -> HttpResponse:
        params = request.path_params if bind_path_params else None
        canonical = await request_from_starlette(request, params)
        result = await run_in_threadpool(router.dispatch, canonical)
        return response_to_starlette(result)

    return endpoint


def create_app(router: Optional[Router] = None) -> FastAPI:
    if router is None:
        from userapi.dependencies import get_router

        router = get_router()

    app = FastAPI(
        title="User Records API",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    for route in router.routes:
        app.add_api_route(
            route.pattern,
            _make_endpoint(router, bind_path_params=True),
            methods=[route.method.value],
            name=f"{route.method.value.lower()}:{route.pattern}",
        )
    # Everything else (preflight, unknown paths/methods) still goes through
    # the router so it answers with its own 404/CORS responses.
    app.add_api_route(
        "/{path:path}",
        _make_endpoint(router, bind_path_params=False),
        methods=ALL_METHODS + ["PATCH", "HEAD"],
        name="fallback",
    )
    app.state.router = router
    return app
