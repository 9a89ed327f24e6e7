from __future__ import annotations

__all__ = [
    "ApiError",
    "ValidationFailure",
    "Conflict",
    "Forbidden",
    "NotFound",
    "AuthenticationFailure",
    "MethodNotAllowed",
    "StorageFailure",
    "HashFailure",
]


class ApiError(Exception):
    """Base class for failures a handler reports to the client.

    ``status_code`` is the HTTP status; ``message`` goes into the
    ``{"Error": ...}`` body. A ``None`` message means an empty body.
    """

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def body(self) -> dict:
        return {} if self.message is None else {"Error": self.message}


class ValidationFailure(ApiError):
    status_code = 400
    code = "validation_failed"


class Conflict(ApiError):
    status_code = 400
    code = "conflict"


class Forbidden(ApiError):
    status_code = 403
    code = "forbidden"


class NotFound(ApiError):
    status_code = 404
    code = "not_found"


class AuthenticationFailure(ApiError):
    status_code = 400
    code = "authentication_failed"


class MethodNotAllowed(ApiError):
    status_code = 405
    code = "method_not_allowed"


class StorageFailure(ApiError):
    status_code = 500
    code = "storage_failure"


class HashFailure(ApiError):
    status_code = 500
    code = "hash_failure"
