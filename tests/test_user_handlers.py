from __future__ import annotations

import pytest

from app.domain.hashing import hash_password
from app.service.context import Services
from app.service.dispatch import dispatch
from app.store import Collection
from tests.support import JANE, SECRET, make_request

pytestmark = pytest.mark.anyio

PHONE = JANE["phone"]


async def _register(services: Services, **overrides: object) -> None:
    response = await dispatch(make_request("post", "users", body={**JANE, **overrides}), services)
    assert response.status_code == 200


async def _login(services: Services, password: str = "secret123") -> str:
    response = await dispatch(
        make_request("post", "tokens", body={"phone": PHONE, "password": password}), services
    )
    assert response.status_code == 200
    return response.body["id"]


async def test_create_stores_hash_not_plaintext(services: Services) -> None:
    response = await dispatch(make_request("post", "users", body=JANE), services)

    assert response.status_code == 200
    assert response.body == {}
    stored = await services.store.read(Collection.users, PHONE)
    assert stored == {
        "firstName": "Jane",
        "lastName": "Doe",
        "phone": PHONE,
        "hashedPassword": hash_password("secret123", SECRET),
        "tosAgreement": True,
    }


async def test_create_trims_fields(services: Services) -> None:
    await _register(services, firstName="  Jane ", phone=" 1234567890 ", password=" secret123 ")

    stored = await services.store.read(Collection.users, PHONE)
    assert stored["firstName"] == "Jane"
    assert stored["hashedPassword"] == hash_password("secret123", SECRET)


@pytest.mark.parametrize(
    "overrides",
    [
        {"firstName": "   "},
        {"lastName": None},
        {"phone": "12345"},
        {"phone": 1234567890},
        {"password": ""},
        {"tosAgreement": False},
        {"tosAgreement": "true"},
    ],
)
async def test_create_rejects_invalid_fields_without_touching_store(
    services: Services, overrides: dict
) -> None:
    response = await dispatch(make_request("post", "users", body={**JANE, **overrides}), services)

    assert response.status_code == 400
    assert response.body == {"Error": "Missing required fields"}
    assert not (services.store.base_dir / "users").exists()


async def test_create_rejects_non_object_body(services: Services) -> None:
    response = await dispatch(make_request("post", "users", body=["not", "an", "object"]), services)
    assert response.status_code == 400


async def test_duplicate_registration_conflicts_and_keeps_original(services: Services) -> None:
    await _register(services)

    response = await dispatch(
        make_request("post", "users", body={**JANE, "firstName": "Mallory", "password": "x"}),
        services,
    )

    assert response.status_code == 400
    assert response.body == {"Error": "A user with that phone number already exists"}
    stored = await services.store.read(Collection.users, PHONE)
    assert stored["firstName"] == "Jane"
    assert stored["hashedPassword"] == hash_password("secret123", SECRET)


async def test_read_requires_owner_token(services: Services) -> None:
    await _register(services)
    token_id = await _login(services)

    ok = await dispatch(make_request("get", "users", query={"phone": PHONE}, token=token_id), services)
    assert ok.status_code == 200
    assert ok.body == {"firstName": "Jane", "lastName": "Doe", "phone": PHONE, "tosAgreement": True}

    for token in (None, "", "x" * 20):
        denied = await dispatch(make_request("get", "users", query={"phone": PHONE}, token=token), services)
        assert denied.status_code == 403
        assert denied.body == {"Error": "Missing required token in header, or token is invalid"}


async def test_read_validates_phone_before_token(services: Services) -> None:
    response = await dispatch(make_request("get", "users", query={"phone": "123"}), services)
    assert response.status_code == 400
    assert response.body == {"Error": "Missing required field"}


async def test_token_of_another_user_is_forbidden(services: Services) -> None:
    await _register(services)
    await _register(services, phone="0987654321")
    jane_token = await _login(services)

    response = await dispatch(
        make_request("get", "users", query={"phone": "0987654321"}, token=jane_token), services
    )
    assert response.status_code == 403


async def test_update_merges_supplied_fields_only(services: Services) -> None:
    await _register(services)
    token_id = await _login(services)

    response = await dispatch(
        make_request(
            "put",
            "users",
            body={"phone": PHONE, "lastName": "Smith", "firstName": 42, "password": "newpass"},
            token=token_id,
        ),
        services,
    )

    assert response.status_code == 200
    stored = await services.store.read(Collection.users, PHONE)
    assert stored["firstName"] == "Jane"
    assert stored["lastName"] == "Smith"
    assert stored["hashedPassword"] == hash_password("newpass", SECRET)
    assert stored["tosAgreement"] is True


async def test_update_requires_something_to_change(services: Services) -> None:
    await _register(services)
    token_id = await _login(services)

    response = await dispatch(
        make_request("put", "users", body={"phone": PHONE, "firstName": "  "}, token=token_id),
        services,
    )
    assert response.status_code == 400
    assert response.body == {"Error": "Missing fields to update"}


async def test_update_requires_owner_token(services: Services) -> None:
    await _register(services)

    response = await dispatch(
        make_request("put", "users", body={"phone": PHONE, "firstName": "Eve"}), services
    )
    assert response.status_code == 403
    assert (await services.store.read(Collection.users, PHONE))["firstName"] == "Jane"


async def test_delete_requires_owner_token(services: Services) -> None:
    await _register(services)
    await _register(services, phone="0987654321")
    other = await dispatch(
        make_request("post", "tokens", body={"phone": "0987654321", "password": "secret123"}),
        services,
    )
    other_token = other.body["id"]

    for token in (None, other_token):
        denied = await dispatch(
            make_request("delete", "users", query={"phone": PHONE}, token=token), services
        )
        assert denied.status_code == 403
        assert denied.body == {"Error": "Missing required token in header, or token is invalid"}
        assert (await services.store.read(Collection.users, PHONE))["phone"] == PHONE


async def test_delete_user_leaves_tokens_behind(services: Services) -> None:
    await _register(services)
    token_id = await _login(services)

    response = await dispatch(
        make_request("delete", "users", query={"phone": PHONE}, token=token_id), services
    )
    assert response.status_code == 200

    # The token is orphaned but still structurally valid for the old phone.
    assert await services.tokens.verify_ownership(token_id, PHONE) is True
    after = await dispatch(make_request("get", "users", query={"phone": PHONE}, token=token_id), services)
    assert after.status_code == 404
    assert after.body == {}

    again = await dispatch(
        make_request("delete", "users", query={"phone": PHONE}, token=token_id), services
    )
    assert again.status_code == 400
    assert again.body == {"Error": "Could not find the specified user"}


async def test_update_of_deleted_user_reports_missing(services: Services) -> None:
    await _register(services)
    token_id = await _login(services)
    await services.store.delete(Collection.users, PHONE)

    response = await dispatch(
        make_request("put", "users", body={"phone": PHONE, "firstName": "Jo"}, token=token_id),
        services,
    )
    assert response.status_code == 400
    assert response.body == {"Error": "The specified user does not exist"}


async def test_storage_fault_is_opaque_500(services: Services) -> None:
    folder = services.store.base_dir / "users"
    folder.mkdir(parents=True)
    (folder / f"{PHONE}.json").write_text("{broken", encoding="utf-8")
    await services.store.create(
        Collection.tokens, "t" * 20, {"id": "t" * 20, "phone": PHONE, "expires": 2**62}
    )

    response = await dispatch(
        make_request("get", "users", query={"phone": PHONE}, token="t" * 20), services
    )

    assert response.status_code == 500
    assert response.body == {"Error": "Could not read the specified user"}
