# postapi/api/router.py
"""
Mount a RouteTable on FastAPI.

The FastAPI routes and their OpenAPI entries are generated from
``RouteTable.describe()``; the endpoint itself only forwards the raw request
to ``RouteTable.dispatch``.
"""

import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Response
from starlette.concurrency import run_in_threadpool

from postapi.dispatch.routing import RouteTable

FALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def to_openapi_path(pattern: str) -> str:
    return re.sub(r":(\w+)", r"{\1}", pattern)


def _route_name(entry: Dict[str, Any]) -> str:
    slug = re.sub(r"\W+", "_", entry["pattern"]).strip("_") or "root"
    return f"{entry['method'].lower()}_{slug}"


def _make_endpoint(table: RouteTable):
    async def endpoint(request: Request) -> Response:
        body = await request.body()
        outcome = await run_in_threadpool(
            table.dispatch,
            request.method,
            request.url.path,
            query=dict(request.query_params),
            body=body,
            store=request.app.state.store,
        )
        return Response(
            content=outcome.body,
            status_code=outcome.status_code,
            media_type=outcome.media_type,
        )

    return endpoint


def openapi_extra(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    extra: Dict[str, Any] = {}

    parameters = [
        {"name": name, "in": "query", "required": False, "schema": {"type": "string"}}
        for name in entry["query"]
    ]
    if entry["param"] is not None:
        parameters.insert(
            0,
            {"name": entry["param"], "in": "path", "required": True, "schema": {"type": "string"}},
        )
    if parameters:
        extra["parameters"] = parameters

    if entry["body"] is not None:
        extra["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": entry["body"]}},
        }

    return extra or None


def build_router(table: RouteTable) -> APIRouter:
    router = APIRouter()
    endpoint = _make_endpoint(table)

    for entry in table.describe():
        router.add_api_route(
            to_openapi_path(entry["pattern"]),
            endpoint,
            methods=[entry["method"]],
            name=_route_name(entry),
            summary=entry["summary"],
            tags=entry["tags"],
            openapi_extra=openapi_extra(entry),
        )

    # unmatched paths still get the dispatcher's 404 body
    router.add_api_route(
        "/{path:path}",
        endpoint,
        methods=FALLBACK_METHODS,
        include_in_schema=False,
    )
    return router
