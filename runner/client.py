from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from app.logging_conf import get_logger
from runner.types import Session, SmokeError, SmokeUser, StepError

logger = get_logger("runner.client")


def expect_status(step: str, response: httpx.Response, status_code: int = 200) -> Any:
    try:
        body = response.json()
    except ValueError:
        body = response.text
    if response.status_code != status_code:
        raise StepError(step, response.status_code, body)
    logger.info("step.ok", extra={"event": "step_ok", "step": step})
    return body


async def wait_for_health(base_url: str, timeout_s: float = 20.0) -> None:
    """Ping /health until it returns ok or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/health")
                if r.status_code == 200 and r.json().get("ok") is True:
                    logger.info("health.ok", extra={"event": "health_ok"})
                    return
            except httpx.HTTPError:
                pass
            await asyncio.sleep(0.25)
    raise SmokeError("Health check did not pass within timeout")


class AccountsClient:
    """Thin async wrapper over the users/tokens endpoints."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def register(self, user: SmokeUser) -> None:
        r = await self._client.post(
            "/users",
            json={
                "firstName": user.first_name,
                "lastName": user.last_name,
                "phone": user.phone,
                "password": user.password,
                "tosAgreement": True,
            },
        )
        expect_status("register", r)

    async def login(self, user: SmokeUser) -> Session:
        r = await self._client.post("/tokens", json={"phone": user.phone, "password": user.password})
        body = expect_status("login", r)
        return Session(token_id=body["id"], expires=body["expires"])

    async def read_user(self, phone: str, session: Session | None) -> httpx.Response:
        headers = {"token": session.token_id} if session else {}
        return await self._client.get("/users", params={"phone": phone}, headers=headers)

    async def extend(self, session: Session) -> None:
        r = await self._client.put("/tokens", json={"id": session.token_id, "extend": True})
        expect_status("extend", r)

    async def delete_user(self, phone: str, session: Session) -> None:
        r = await self._client.delete(
            "/users", params={"phone": phone}, headers={"token": session.token_id}
        )
        expect_status("delete_user", r)

    async def logout(self, session: Session) -> None:
        r = await self._client.delete("/tokens", params={"id": session.token_id})
        expect_status("logout", r)
