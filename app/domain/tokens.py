from __future__ import annotations

import secrets
import string
import time

__all__ = [
    "TOKEN_TTL_MS",
    "TOKEN_ID_LENGTH",
    "TOKEN_ID_ALPHABET",
    "now_ms",
    "expiry_from",
    "is_active",
    "new_token_id",
]

# A token lives one hour from issue or from its latest extension.
TOKEN_TTL_MS = 60 * 60 * 1000
TOKEN_ID_LENGTH = 20
TOKEN_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    """Return current time in epoch milliseconds."""
    return int(time.time() * 1000)


def expiry_from(now: int) -> int:
    return now + TOKEN_TTL_MS


def is_active(expires: int, now: int) -> bool:
    """A token is valid strictly before its expiry instant."""
    return expires > now


def new_token_id(length: int = TOKEN_ID_LENGTH) -> str:
    """Draw a random id uniformly from ``TOKEN_ID_ALPHABET``."""
    return "".join(secrets.choice(TOKEN_ID_ALPHABET) for _ in range(length))
