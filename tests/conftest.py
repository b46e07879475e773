import os
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

# Ensure the module-level app defaults to the memory backend and a fixed key
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-module-secret")

from todo_api.main import create_app  # noqa: E402
from todo_api.settings import Settings  # noqa: E402

TEST_SECRET = "test-secret-key"


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret=TEST_SECRET, persistence_backend="memory")


@pytest.fixture
def client(settings: Settings) -> TestClient:
    # A fresh app per test keeps the in-memory stores isolated
    return TestClient(create_app(settings))


@pytest.fixture
def sqlite_settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        persistence_backend="sqlite",
        sqlite_db_path=str(tmp_path / "todos.db"),
    )


@pytest.fixture
def sqlite_client(sqlite_settings: Settings) -> TestClient:
    return TestClient(create_app(sqlite_settings))


def register(client: TestClient, email: str = "a@x.com", password: str = "secret123") -> Dict:
    res = client.post("/accounts", json={"email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client: TestClient) -> Callable[..., Dict[str, str]]:
    """Register an account and return Authorization headers for it."""

    def _make(email: str = "a@x.com", password: str = "secret123") -> Dict[str, str]:
        body = register(client, email, password)
        return auth_headers(body["access_token"])

    return _make
