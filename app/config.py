"""Runtime configuration read from the process environment.

Two named environments exist, ``staging`` and ``production``; each carries
its own default port and hashing secret. Individual values can always be
overridden through their environment variable.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = ["Settings", "load_settings"]

_ENVIRONMENTS: dict[str, dict[str, object]] = {
    "staging": {"http_port": 3000, "hashing_secret": "staging-hashing-secret"},
    "production": {"http_port": 5000, "hashing_secret": "production-hashing-secret"},
}
_DEFAULT_ENV = "staging"


@dataclass(frozen=True)
class Settings:
    env_name: str
    http_host: str
    http_port: int
    data_dir: Path
    hashing_secret: str
    log_level: str


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 10)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer") from e


def load_settings() -> Settings:
    """Build a fresh ``Settings`` from the current environment.

    ``APP_ENV`` selects the preset; unknown names fall back to staging.
    """
    env_name = os.getenv("APP_ENV", _DEFAULT_ENV).strip().lower()
    if env_name not in _ENVIRONMENTS:
        env_name = _DEFAULT_ENV
    preset = _ENVIRONMENTS[env_name]

    return Settings(
        env_name=env_name,
        http_host=os.getenv("HTTP_HOST", "127.0.0.1"),
        http_port=_int_from_env("HTTP_PORT", int(preset["http_port"])),
        data_dir=Path(os.getenv("DATA_DIR", ".data")),
        hashing_secret=os.getenv("HASHING_SECRET") or str(preset["hashing_secret"]),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
