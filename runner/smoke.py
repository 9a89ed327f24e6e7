#!/usr/bin/env python3
"""End-to-end smoke run against a live server.

Steps:
- wait for server health
- register a throwaway user, log in, read the user back with the token
- confirm an anonymous read is forbidden
- extend the token, delete the user, delete the token
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import secrets
import sys

import httpx

from app.logging_conf import get_logger, setup_logging
from runner.cli import parse_args
from runner.client import AccountsClient, expect_status, wait_for_health
from runner.types import SmokeError, SmokeUser, StepError

setup_logging()
logger = get_logger("runner")


def _random_user() -> SmokeUser:
    phone = "".join(secrets.choice("0123456789") for _ in range(10))
    return SmokeUser(phone=phone, password=secrets.token_urlsafe(12))


async def run_smoke(*, base_url: str, timeout_s: float = 20.0) -> int:
    await wait_for_health(base_url, timeout_s)
    user = _random_user()
    steps: list[str] = []

    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as http:
        api = AccountsClient(http)
        try:
            await api.register(user)
            steps.append("register")
            session = await api.login(user)
            steps.append("login")

            body = expect_status("read_user", await api.read_user(user.phone, session))
            if "hashedPassword" in body:
                raise SmokeError("user read leaked hashedPassword")
            steps.append("read_user")

            expect_status("read_anonymous", await api.read_user(user.phone, None), status_code=403)
            steps.append("read_anonymous")

            await api.extend(session)
            steps.append("extend")
            await api.delete_user(user.phone, session)
            steps.append("delete_user")
            await api.logout(session)
            steps.append("logout")
        except SmokeError as e:
            failed = e.step if isinstance(e, StepError) else "check"
            logger.error(
                "runner.failed",
                extra={"event": "summary", "completed": steps, "failed": failed, "error": str(e)},
            )
            return 1

    logger.info("runner.summary", extra={"event": "summary", "completed": steps})
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    code = asyncio.run(run_smoke(base_url=args.base_url, timeout_s=args.timeout))
    raise SystemExit(code)


if __name__ == "__main__":
    main()
