"""Handlers for the ``tokens`` resource (login, lookup, extend, logout)."""
from __future__ import annotations

from ..api.models import TokenCreateRequest, TokenExtendRequest, TokenLookup, parse_payload
from ..domain.errors import AuthenticationFailure, NotFound, ValidationFailure
from .context import ApiRequest, ApiResponse, Services
from .guards import storage_guard
from .token_service import BadCredentials, TokenExpired, TokenNotFound, UserNotFound

__all__ = ["create_token", "read_token", "extend_token", "delete_token"]


async def create_token(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(TokenCreateRequest, request.body, "Missing required field(s)")

    with storage_guard("Could not create the new token"):
        try:
            token = await services.tokens.issue(req.phone, req.password)
        except UserNotFound as e:
            raise AuthenticationFailure("Could not find the specified user") from e
        except BadCredentials as e:
            raise AuthenticationFailure(
                "Password did not match the specified user's stored password"
            ) from e
    return ApiResponse(200, token.to_store())


async def read_token(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(TokenLookup, request.query, "Missing required field")

    with storage_guard("Could not read the specified token"):
        try:
            token = await services.tokens.fetch(req.token_id)
        except TokenNotFound as e:
            raise NotFound() from e
    return ApiResponse(200, token.to_store())


async def extend_token(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(
        TokenExtendRequest, request.body, "Missing required field(s) or field(s) are invalid"
    )

    with storage_guard("Could not update the token's expiration"):
        try:
            await services.tokens.extend(req.token_id)
        except TokenNotFound as e:
            raise NotFound("Specified token does not exist", status_code=400) from e
        except TokenExpired as e:
            raise ValidationFailure("The token has already expired, and cannot be extended") from e
    return ApiResponse(200)


async def delete_token(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(TokenLookup, request.query, "Missing required field")

    with storage_guard("Could not delete the specified token"):
        try:
            await services.tokens.revoke(req.token_id)
        except TokenNotFound as e:
            raise NotFound("Could not find the specified token", status_code=400) from e
    return ApiResponse(200)
