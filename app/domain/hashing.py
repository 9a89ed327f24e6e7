from __future__ import annotations

import hashlib
import hmac

__all__ = ["hash_password", "passwords_match"]


def hash_password(plaintext: object, secret: str) -> str | None:
    """Return the hex HMAC-SHA256 of ``plaintext`` keyed with ``secret``.

    The output is deterministic for a given secret, so stored hashes can be
    compared by equality at login. Returns ``None`` instead of raising when
    the input is not a non-empty string; callers must check before storing.
    """
    if not isinstance(plaintext, str) or not plaintext:
        return None
    if not secret:
        return None
    return hmac.new(secret.encode("utf-8"), plaintext.encode("utf-8"), hashlib.sha256).hexdigest()


def passwords_match(plaintext: object, hashed: object, secret: str) -> bool:
    """Constant-time comparison of a candidate password against a stored hash."""
    candidate = hash_password(plaintext, secret)
    if candidate is None or not isinstance(hashed, str):
        return False
    return hmac.compare_digest(candidate, hashed)
