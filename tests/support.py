"""Helpers shared by the test modules."""
from __future__ import annotations

from typing import Any

from app.domain.tokens import now_ms
from app.service.context import ApiRequest

SECRET = "test-hashing-secret"

JANE = {
    "firstName": "Jane",
    "lastName": "Doe",
    "phone": "1234567890",
    "password": "secret123",
    "tosAgreement": True,
}


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start: int | None = None) -> None:
        self.now = start if start is not None else now_ms()

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_request(
    method: str,
    path: str,
    *,
    body: Any = None,
    query: dict[str, str] | None = None,
    token: str | None = None,
) -> ApiRequest:
    headers = {"token": token} if token is not None else {}
    return ApiRequest(path=path, method=method, query=query or {}, headers=headers, body=body)
