from __future__ import annotations

import pytest

from app.domain.tokens import TOKEN_TTL_MS
from app.service.context import Services
from app.service.dispatch import dispatch
from tests.support import JANE, FakeClock, make_request

pytestmark = pytest.mark.anyio

PHONE = JANE["phone"]


@pytest.fixture
async def jane(services: Services) -> str:
    response = await dispatch(make_request("post", "users", body=JANE), services)
    assert response.status_code == 200
    return PHONE


async def _login(services: Services) -> dict:
    response = await dispatch(
        make_request("post", "tokens", body={"phone": PHONE, "password": "secret123"}), services
    )
    assert response.status_code == 200
    return response.body


async def test_login_returns_full_token(services: Services, jane: str, clock: FakeClock) -> None:
    body = await _login(services)

    assert set(body) == {"id", "phone", "expires"}
    assert len(body["id"]) == 20
    assert body["phone"] == jane
    assert body["expires"] == clock.now + TOKEN_TTL_MS


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"phone": PHONE, "password": "wrong"}, "Password did not match the specified user's stored password"),
        ({"phone": "0000000000", "password": "secret123"}, "Could not find the specified user"),
    ],
)
async def test_login_failures(services: Services, jane: str, payload: dict, message: str) -> None:
    response = await dispatch(make_request("post", "tokens", body=payload), services)
    assert response.status_code == 400
    assert response.body == {"Error": message}


async def test_login_requires_fields(services: Services) -> None:
    response = await dispatch(make_request("post", "tokens", body={"phone": PHONE}), services)
    assert response.status_code == 400
    assert response.body == {"Error": "Missing required field(s)"}


async def test_read_token_including_expired(services: Services, jane: str, clock: FakeClock) -> None:
    token = await _login(services)
    clock.advance(5 * TOKEN_TTL_MS)

    response = await dispatch(make_request("get", "tokens", query={"id": token["id"]}), services)
    assert response.status_code == 200
    assert response.body == token


async def test_read_token_validation_and_missing(services: Services) -> None:
    short = await dispatch(make_request("get", "tokens", query={"id": "abc"}), services)
    assert short.status_code == 400

    missing = await dispatch(make_request("get", "tokens", query={"id": "q" * 20}), services)
    assert missing.status_code == 404
    assert missing.body == {}


async def test_extend_valid_token(services: Services, jane: str, clock: FakeClock) -> None:
    token = await _login(services)
    clock.advance(10_000)

    response = await dispatch(
        make_request("put", "tokens", body={"id": token["id"], "extend": True}), services
    )
    assert response.status_code == 200
    assert (await services.tokens.fetch(token["id"])).expires == clock.now + TOKEN_TTL_MS


@pytest.mark.parametrize("extend", [False, "true", 1, None])
async def test_extend_requires_literal_true(services: Services, jane: str, extend: object) -> None:
    token = await _login(services)
    response = await dispatch(
        make_request("put", "tokens", body={"id": token["id"], "extend": extend}), services
    )
    assert response.status_code == 400
    assert response.body == {"Error": "Missing required field(s) or field(s) are invalid"}


async def test_extend_expired_token(services: Services, jane: str, clock: FakeClock) -> None:
    token = await _login(services)
    clock.advance(TOKEN_TTL_MS + 1)

    response = await dispatch(
        make_request("put", "tokens", body={"id": token["id"], "extend": True}), services
    )
    assert response.status_code == 400
    assert response.body == {"Error": "The token has already expired, and cannot be extended"}
    assert (await services.tokens.fetch(token["id"])).expires == token["expires"]


async def test_extend_missing_token(services: Services) -> None:
    response = await dispatch(
        make_request("put", "tokens", body={"id": "m" * 20, "extend": True}), services
    )
    assert response.status_code == 400
    assert response.body == {"Error": "Specified token does not exist"}


async def test_delete_token(services: Services, jane: str) -> None:
    token = await _login(services)

    first = await dispatch(make_request("delete", "tokens", query={"id": token["id"]}), services)
    second = await dispatch(make_request("delete", "tokens", query={"id": token["id"]}), services)

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.body == {"Error": "Could not find the specified token"}


async def test_unsafe_token_id_is_rejected(services: Services) -> None:
    response = await dispatch(make_request("delete", "tokens", query={"id": "../../../../etc/pass"}), services)
    assert response.status_code == 400
