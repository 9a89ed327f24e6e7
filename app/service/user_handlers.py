"""Handlers for the ``users`` resource.

Every handler re-reads from the store; nothing is cached between requests.
Reads and mutations of an existing user require a token owned by that phone.
Deleting a user leaves its tokens on disk; they stay valid until they expire
or are deleted.
"""
from __future__ import annotations

from pydantic import ValidationError

from ..api.models import UserCreateRequest, UserLookup, UserUpdateRequest, parse_payload
from ..domain.errors import Conflict, HashFailure, NotFound, StorageFailure, ValidationFailure
from ..domain.hashing import hash_password
from ..domain.records import UserRecord
from ..logging_conf import get_logger
from ..store import Collection, RecordExists, RecordNotFound
from .context import ApiRequest, ApiResponse, Services
from .guards import require_owner, storage_guard

__all__ = ["create_user", "read_user", "update_user", "delete_user"]

logger = get_logger("service.users")


def _load_user(raw: object) -> UserRecord:
    try:
        return UserRecord.model_validate(raw)
    except ValidationError as e:
        raise StorageFailure("Stored user record is malformed") from e


async def create_user(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(UserCreateRequest, request.body, "Missing required fields")

    hashed = hash_password(req.password, services.settings.hashing_secret)
    if hashed is None:
        raise HashFailure("Could not hash the user's password")

    user = UserRecord(
        first_name=req.first_name,
        last_name=req.last_name,
        phone=req.phone,
        hashed_password=hashed,
        tos_agreement=True,
    )
    with storage_guard("Could not create the new user"):
        try:
            await services.store.create(Collection.users, req.phone, user.to_store())
        except RecordExists as e:
            raise Conflict("A user with that phone number already exists") from e

    logger.info("user.create", extra={"event": "user_create", "phone": req.phone})
    return ApiResponse(200)


async def read_user(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(UserLookup, request.query, "Missing required field")
    await require_owner(services, request, req.phone)

    with storage_guard("Could not read the specified user"):
        try:
            raw = await services.store.read(Collection.users, req.phone)
        except RecordNotFound as e:
            raise NotFound() from e
    return ApiResponse(200, _load_user(raw).public())


async def update_user(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(UserUpdateRequest, request.body, "Missing required field")
    if not req.has_changes():
        raise ValidationFailure("Missing fields to update")
    await require_owner(services, request, req.phone)

    with storage_guard("Could not update the user"):
        async with services.store.lock(Collection.users, req.phone):
            try:
                user = _load_user(await services.store.read(Collection.users, req.phone))
            except RecordNotFound as e:
                raise NotFound("The specified user does not exist", status_code=400) from e

            changes: dict[str, str] = {}
            if req.first_name is not None:
                changes["first_name"] = req.first_name
            if req.last_name is not None:
                changes["last_name"] = req.last_name
            if req.password is not None:
                hashed = hash_password(req.password, services.settings.hashing_secret)
                if hashed is None:
                    raise HashFailure("Could not hash the user's password")
                changes["hashed_password"] = hashed

            user = user.model_copy(update=changes)
            try:
                await services.store.update(Collection.users, req.phone, user.to_store())
            except RecordNotFound as e:
                raise NotFound("The specified user does not exist", status_code=400) from e

    logger.info(
        "user.update",
        extra={"event": "user_update", "phone": req.phone, "fields": sorted(changes)},
    )
    return ApiResponse(200)


async def delete_user(request: ApiRequest, services: Services) -> ApiResponse:
    req = parse_payload(UserLookup, request.query, "Missing required field")
    await require_owner(services, request, req.phone)

    with storage_guard("Could not delete the specified user"):
        async with services.store.lock(Collection.users, req.phone):
            try:
                await services.store.read(Collection.users, req.phone)
                await services.store.delete(Collection.users, req.phone)
            except RecordNotFound as e:
                raise NotFound("Could not find the specified user", status_code=400) from e

    logger.info("user.delete", extra={"event": "user_delete", "phone": req.phone})
    return ApiResponse(200)
