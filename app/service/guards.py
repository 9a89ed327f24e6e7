from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from ..domain.errors import Forbidden, StorageFailure, ValidationFailure
from ..store import InvalidRecordKey, StorageError
from .context import ApiRequest, Services

__all__ = ["FORBIDDEN_MESSAGE", "storage_guard", "require_owner"]

FORBIDDEN_MESSAGE = "Missing required token in header, or token is invalid"


@contextmanager
def storage_guard(message: str) -> Iterator[None]:
    """Translate store faults raised inside the block into client errors.

    ``message`` is the opaque text sent with the 500; the cause stays chained
    for the dispatcher to log.
    """
    try:
        yield
    except InvalidRecordKey as e:
        raise ValidationFailure("Invalid characters in record key") from e
    except StorageError as e:
        raise StorageFailure(message) from e


async def require_owner(services: Services, request: ApiRequest, phone: str) -> None:
    """Raise ``Forbidden`` unless the request's token belongs to ``phone``."""
    if not await services.tokens.verify_ownership(request.token, phone):
        raise Forbidden(FORBIDDEN_MESSAGE)
