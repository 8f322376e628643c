from collections.abc import Iterator
from pathlib import Path

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from tests.helpers.fakes import SERVICE_MODULES, InMemoryStore, fake_connection
from workdesk.main import app

load_dotenv(Path(__file__).resolve().parents[1] / ".env")


@pytest.fixture
def client() -> Iterator[TestClient]:
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryStore:
    for module in SERVICE_MODULES:
        monkeypatch.setattr(f"{module}.get_connection", fake_connection)
    return InMemoryStore()
