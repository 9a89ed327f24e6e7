from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import Settings
from ..store import RecordStore
from .token_service import TokenService

__all__ = ["TOKEN_HEADER", "ApiRequest", "ApiResponse", "Services"]

TOKEN_HEADER = "token"


@dataclass(frozen=True)
class ApiRequest:
    """Transport-neutral request handed to the dispatcher.

    ``headers`` keys are lower-case. ``body`` is the parsed JSON payload,
    or ``None`` when there was none or it did not parse.
    """

    path: str
    method: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def token(self) -> str | None:
        raw = self.headers.get(TOKEN_HEADER)
        return raw.strip() if isinstance(raw, str) else None


@dataclass(frozen=True)
class ApiResponse:
    status_code: int = 200
    body: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Services:
    """Collaborators a handler may use while serving one request."""

    settings: Settings
    store: RecordStore
    tokens: TokenService

    @classmethod
    def from_settings(cls, settings: Settings) -> Services:
        store = RecordStore(settings.data_dir)
        return cls(
            settings=settings,
            store=store,
            tokens=TokenService(store, settings.hashing_secret),
        )
