from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["UserRecord", "TokenRecord"]


class UserRecord(BaseModel):
    """Stored account, keyed by ``phone``."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    phone: str
    hashed_password: str = Field(alias="hashedPassword")
    tos_agreement: bool = Field(alias="tosAgreement")

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def public(self) -> dict[str, Any]:
        """Client-facing view; the password hash never leaves the server."""
        return self.model_dump(by_alias=True, exclude={"hashed_password"})


class TokenRecord(BaseModel):
    """Stored session token, keyed by ``id``.

    ``phone`` points at the owning user but is not enforced by the store;
    a token can outlive the user it was issued for.
    """

    id: str
    phone: str
    expires: int  # epoch ms

    def to_store(self) -> dict[str, Any]:
        return self.model_dump()
