from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SmokeUser:
    """Credentials registered for one smoke run."""

    phone: str
    password: str
    first_name: str = "Smoke"
    last_name: str = "Runner"


@dataclass
class Session:
    token_id: str
    expires: int


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class StepError(SmokeError):
    """Raised when one API step returns an unexpected status."""

    def __init__(self, step: str, status_code: int, body: object) -> None:
        super().__init__(f"{step} failed with {status_code}: {body}")
        self.step = step
        self.status_code = status_code
        self.body = body
