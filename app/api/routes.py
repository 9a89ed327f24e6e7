from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..logging_conf import get_logger
from ..service.context import ApiRequest, Services
from ..service.dispatch import dispatch

router = APIRouter()
logger = get_logger("api")

_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def _parse_body(raw: bytes) -> Any:
    """Lenient JSON decode; an empty or malformed payload becomes ``None``."""
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.debug("request.body_unparsed", extra={"event": "request_body_unparsed"})
        return None


async def to_api_request(request: Request, path: str) -> ApiRequest:
    return ApiRequest(
        path=path,
        method=request.method.lower(),
        query=dict(request.query_params),
        headers={k.lower(): v for k, v in request.headers.items()},
        body=_parse_body(await request.body()),
    )


@router.api_route(
    "/{path:path}",
    methods=_METHODS,
    summary="Users and tokens resources",
    include_in_schema=False,
)
async def handle(path: str, request: Request) -> JSONResponse:
    """Normalize the HTTP request, dispatch it and serialize the result."""
    services: Services = request.app.state.services
    api_request = await to_api_request(request, path)
    response = await dispatch(api_request, services)
    return JSONResponse(status_code=response.status_code, content=response.body)
