from __future__ import annotations

from collections.abc import Callable

from pydantic import ValidationError

from ..domain.hashing import passwords_match
from ..domain.records import TokenRecord, UserRecord
from ..domain.tokens import expiry_from, is_active, new_token_id, now_ms
from ..logging_conf import get_logger
from ..store import Collection, RecordExists, RecordNotFound, RecordStore, StorageError, StoreError

__all__ = [
    "TokenServiceError",
    "UserNotFound",
    "BadCredentials",
    "TokenNotFound",
    "TokenExpired",
    "TokenService",
]

logger = get_logger("service.tokens")

_MAX_ID_ATTEMPTS = 5


# ------------------------
# Errors
# ------------------------
class TokenServiceError(Exception):
    code: str = "token_error"


class UserNotFound(TokenServiceError):
    code = "user_not_found"


class BadCredentials(TokenServiceError):
    code = "bad_credentials"


class TokenNotFound(TokenServiceError):
    code = "token_not_found"


class TokenExpired(TokenServiceError):
    code = "token_expired"


def _load_token(data: object) -> TokenRecord:
    try:
        return TokenRecord.model_validate(data)
    except ValidationError as e:
        raise StorageError(f"malformed token record: {e}") from e


class TokenService:
    """Mints, reads, extends, revokes and checks ownership tokens.

    ``clock`` returns epoch milliseconds and is injectable for tests.
    """

    def __init__(
        self,
        store: RecordStore,
        hashing_secret: str,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.hashing_secret = hashing_secret
        self.clock = clock

    async def issue(self, phone: str, password: str) -> TokenRecord:
        """Log in: check the password against the user's hash and mint a token."""
        try:
            raw_user = await self.store.read(Collection.users, phone)
        except RecordNotFound as e:
            raise UserNotFound(phone) from e
        try:
            user = UserRecord.model_validate(raw_user)
        except ValidationError as e:
            raise StorageError(f"malformed user record: {e}") from e

        if not passwords_match(password, user.hashed_password, self.hashing_secret):
            raise BadCredentials(phone)

        for _ in range(_MAX_ID_ATTEMPTS):
            token = TokenRecord(id=new_token_id(), phone=phone, expires=expiry_from(self.clock()))
            try:
                await self.store.create(Collection.tokens, token.id, token.to_store())
            except RecordExists:
                logger.warning("token.id_collision", extra={"event": "token_id_collision"})
                continue
            logger.info("token.issue", extra={"event": "token_issue", "phone": phone})
            return token
        raise StorageError("could not allocate a unique token id")

    async def fetch(self, token_id: str) -> TokenRecord:
        """Raw read; an expired token is still returned."""
        try:
            raw = await self.store.read(Collection.tokens, token_id)
        except RecordNotFound as e:
            raise TokenNotFound(token_id) from e
        return _load_token(raw)

    async def extend(self, token_id: str) -> TokenRecord:
        """Push expiry to one hour from now, unless the token already lapsed."""
        async with self.store.lock(Collection.tokens, token_id):
            token = await self.fetch(token_id)
            now = self.clock()
            if not is_active(token.expires, now):
                raise TokenExpired(token_id)
            token = token.model_copy(update={"expires": expiry_from(now)})
            try:
                await self.store.update(Collection.tokens, token_id, token.to_store())
            except RecordNotFound as e:
                raise TokenNotFound(token_id) from e
        logger.info("token.extend", extra={"event": "token_extend", "phone": token.phone})
        return token

    async def revoke(self, token_id: str) -> None:
        async with self.store.lock(Collection.tokens, token_id):
            try:
                await self.store.delete(Collection.tokens, token_id)
            except RecordNotFound as e:
                raise TokenNotFound(token_id) from e
        logger.info("token.revoke", extra={"event": "token_revoke"})

    async def verify_ownership(self, token_id: object, phone: str) -> bool:
        """True iff the token exists, belongs to ``phone`` and has not expired.

        Never raises: every lookup failure reads as "not authorized".
        """
        if not isinstance(token_id, str) or not token_id:
            return False
        try:
            token = await self.fetch(token_id)
        except TokenNotFound:
            return False
        except StoreError as e:
            logger.warning(
                "token.verify_failed",
                extra={"event": "token_verify_failed", "error_code": e.code},
            )
            return False
        return token.phone == phone and is_active(token.expires, self.clock())
