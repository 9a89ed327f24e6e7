"""Shared fixtures: an isolated data directory, a controllable clock and an app client."""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.service.context import Services
from app.service.token_service import TokenService
from app.store import RecordStore
from tests.support import SECRET, FakeClock


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env_name="staging",
        http_host="127.0.0.1",
        http_port=3000,
        data_dir=tmp_path / "data",
        hashing_secret=SECRET,
        log_level="INFO",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(settings: Settings) -> RecordStore:
    return RecordStore(settings.data_dir)


@pytest.fixture
def services(settings: Settings, store: RecordStore, clock: FakeClock) -> Services:
    return Services(settings=settings, store=store, tokens=TokenService(store, SECRET, clock=clock))


@pytest.fixture
def client(settings: Settings, services: Services) -> TestClient:
    app = create_app(settings)
    app.state.services = services
    return TestClient(app)
