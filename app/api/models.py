"""Per-endpoint request schemas.

Each schema trims strings and enforces the exact-length / non-empty rules
before any handler logic runs. Types are strict: a phone sent as a JSON
number or a ``tosAgreement`` sent as ``"true"`` is rejected, not coerced.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Optional, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..domain.errors import ValidationFailure
from ..domain.tokens import TOKEN_ID_LENGTH

PHONE_LENGTH = 10

Text = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
Phone = Annotated[
    str,
    StringConstraints(
        strict=True, strip_whitespace=True, min_length=PHONE_LENGTH, max_length=PHONE_LENGTH
    ),
]
TokenId = Annotated[
    str,
    StringConstraints(
        strict=True, strip_whitespace=True, min_length=TOKEN_ID_LENGTH, max_length=TOKEN_ID_LENGTH
    ),
]


def _text_or_none(value: Any) -> Optional[str]:
    # Optional fields that are present but unusable count as not supplied.
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


OptionalText = Annotated[Optional[str], BeforeValidator(_text_or_none)]


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UserCreateRequest(_Payload):
    first_name: Text
    last_name: Text
    phone: Phone
    password: Text
    tos_agreement: StrictBool

    @field_validator("tos_agreement")
    @classmethod
    def _must_agree(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("tosAgreement must be true")
        return value


class UserLookup(_Payload):
    """Query for GET/DELETE /users."""

    phone: Phone


class UserUpdateRequest(_Payload):
    phone: Phone
    first_name: OptionalText = None
    last_name: OptionalText = None
    password: OptionalText = None

    def has_changes(self) -> bool:
        return any(v is not None for v in (self.first_name, self.last_name, self.password))


class TokenCreateRequest(_Payload):
    phone: Phone
    password: Text


class TokenLookup(_Payload):
    """Query for GET/DELETE /tokens."""

    token_id: TokenId = Field(alias="id")


class TokenExtendRequest(_Payload):
    token_id: TokenId = Field(alias="id")
    extend: StrictBool

    @model_validator(mode="after")
    def _must_extend(self) -> "TokenExtendRequest":
        if self.extend is not True:
            raise ValueError("extend must be true")
        return self


M = TypeVar("M", bound=BaseModel)


def parse_payload(model: type[M], data: Any, message: str) -> M:
    """Validate ``data`` against ``model`` or raise ``ValidationFailure(message)``.

    Anything that is not a JSON object is validated as an empty object.
    """
    if not isinstance(data, Mapping):
        data = {}
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise ValidationFailure(message) from e
