from __future__ import annotations

import pytest

from app.service.context import Services
from app.service.dispatch import ROUTES, Method, Resource, dispatch
from tests.support import make_request


def test_route_table_covers_every_resource_method() -> None:
    assert set(ROUTES) == {(r, m) for r in Resource for m in Method}


@pytest.mark.anyio
@pytest.mark.parametrize("method", ["get", "post", "put", "delete", "patch", "head", "options"])
async def test_ping_answers_every_method(services: Services, method: str) -> None:
    response = await dispatch(make_request(method, "/ping/"), services)
    assert (response.status_code, response.body) == (200, {})


@pytest.mark.anyio
async def test_unknown_path_is_404(services: Services) -> None:
    response = await dispatch(make_request("get", "nope"), services)
    assert (response.status_code, response.body) == (404, {})


@pytest.mark.anyio
async def test_unsupported_method_is_405(services: Services) -> None:
    response = await dispatch(make_request("patch", "users"), services)
    assert (response.status_code, response.body) == (405, {})
