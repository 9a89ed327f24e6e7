"""Route a normalized request to its handler and shape the response.

Routing is a closed table keyed by ``(Resource, Method)``. Paths outside
``Resource`` get a 404; a known path with an unsupported verb gets a 405.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from types import MappingProxyType

from ..domain.errors import ApiError, MethodNotAllowed, NotFound
from ..logging_conf import get_logger
from .context import ApiRequest, ApiResponse, Services
from .token_handlers import create_token, delete_token, extend_token, read_token
from .user_handlers import create_user, delete_user, read_user, update_user

__all__ = ["Resource", "Method", "Handler", "ROUTES", "dispatch"]

logger = get_logger("service.dispatch")

Handler = Callable[[ApiRequest, Services], Awaitable[ApiResponse]]


class Resource(str, Enum):
    users = "users"
    tokens = "tokens"
    ping = "ping"


class Method(str, Enum):
    get = "get"
    post = "post"
    put = "put"
    delete = "delete"


async def ping(request: ApiRequest, services: Services) -> ApiResponse:
    return ApiResponse(200)


ROUTES: Mapping[tuple[Resource, Method], Handler] = MappingProxyType(
    {
        (Resource.users, Method.post): create_user,
        (Resource.users, Method.get): read_user,
        (Resource.users, Method.put): update_user,
        (Resource.users, Method.delete): delete_user,
        (Resource.tokens, Method.post): create_token,
        (Resource.tokens, Method.get): read_token,
        (Resource.tokens, Method.put): extend_token,
        (Resource.tokens, Method.delete): delete_token,
        **{(Resource.ping, m): ping for m in Method},
    }
)


def _resolve(request: ApiRequest) -> Handler:
    try:
        resource = Resource(request.path.strip("/"))
    except ValueError as e:
        raise NotFound() from e
    if resource is Resource.ping:
        # Liveness answers whatever the verb.
        return ping
    try:
        method = Method(request.method.lower())
    except ValueError as e:
        raise MethodNotAllowed() from e
    handler = ROUTES.get((resource, method))
    if handler is None:
        raise MethodNotAllowed()
    return handler


async def dispatch(request: ApiRequest, services: Services) -> ApiResponse:
    """Run the matching handler; every ``ApiError`` becomes a status + body."""
    try:
        handler = _resolve(request)
        return await handler(request, services)
    except ApiError as e:
        if e.status_code >= 500:
            logger.error(
                "handler.failure",
                extra={
                    "event": "handler_failure",
                    "path": request.path,
                    "method": request.method,
                    "error_code": e.code,
                },
                exc_info=e.__cause__ or e,
            )
        else:
            logger.info(
                "handler.rejected",
                extra={
                    "event": "handler_rejected",
                    "path": request.path,
                    "status_code": e.status_code,
                    "error_code": e.code,
                },
            )
        return ApiResponse(e.status_code, e.body())
