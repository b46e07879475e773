import sqlite3

import pytest
from fastapi.testclient import TestClient

from conftest import auth_headers, register
from todo_api.db import SQLiteTodoRepository
from todo_api.errors import StoreUnavailable
from todo_api.main import create_app
from todo_api.schemas import TodoCreate


class TestSQLiteApi:
    def test_health_reports_backend(self, sqlite_client):
        assert sqlite_client.get("/").json()["backend"] == "sqlite"

    def test_end_to_end(self, sqlite_client):
        headers = auth_headers(register(sqlite_client)["access_token"])
        created = sqlite_client.post("/todos", json={"title": "Test", "due_date": "2030-01-01"}, headers=headers)
        assert created.status_code == 201
        tid = created.json()["id"]

        updated = sqlite_client.put(f"/todos/{tid}", json={"completed": True}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["completed"] is True
        assert updated.json()["due_date"] == "2030-01-01"

        assert sqlite_client.delete(f"/todos/{tid}", headers=headers).status_code == 200
        assert sqlite_client.get(f"/todos/{tid}", headers=headers).status_code == 404

    def test_page_far_past_the_end(self, sqlite_client):
        headers = auth_headers(register(sqlite_client)["access_token"])
        sqlite_client.post("/todos", json={"title": "Only"}, headers=headers)
        res = sqlite_client.get(f"/todos?page={10 ** 17}&limit=100", headers=headers)
        assert res.status_code == 200
        data = res.json()
        assert data["items"] == []
        assert data["pagination"]["total_todos"] == 1
        assert data["pagination"]["total_pages"] == 1
        assert data["pagination"]["has_next_page"] is False
        assert data["pagination"]["has_prev_page"] is True

    def test_duplicate_email(self, sqlite_client):
        register(sqlite_client, email="a@x.com")
        res = sqlite_client.post("/accounts", json={"email": "a@x.com", "password": "secret123"})
        assert res.status_code == 409

    def test_data_survives_app_restart(self, sqlite_settings):
        first = TestClient(create_app(sqlite_settings))
        headers = auth_headers(register(first)["access_token"])
        first.post("/todos", json={"title": "Persisted"}, headers=headers)

        # Same file and secret: the old token and the todo are still valid
        second = TestClient(create_app(sqlite_settings))
        res = second.get("/todos", headers=headers)
        assert res.status_code == 200
        assert [t["title"] for t in res.json()["items"]] == ["Persisted"]

        login = second.post("/sessions", json={"email": "a@x.com", "password": "secret123"})
        assert login.status_code == 200

    def test_store_failure_is_generic_500(self, sqlite_settings, sqlite_client):
        headers = auth_headers(register(sqlite_client)["access_token"])
        with sqlite3.connect(sqlite_settings.sqlite_db_path) as conn:
            conn.execute("DROP TABLE todos")

        res = sqlite_client.get("/todos", headers=headers)
        assert res.status_code == 500
        assert res.json() == {"error": "ServerError", "message": "Internal server error", "detail": None}
        assert "todos" not in res.text


class TestSQLiteRepository:
    def test_operational_error_becomes_store_unavailable(self, tmp_path):
        path = str(tmp_path / "broken.db")
        repo = SQLiteTodoRepository(path)
        with sqlite3.connect(path) as conn:
            conn.execute("DROP TABLE todos")
        with pytest.raises(StoreUnavailable):
            repo.create("owner", TodoCreate(title="x"))
        with pytest.raises(StoreUnavailable):
            repo.list("owner")

    def test_missing_row_after_write_is_store_unavailable(self, tmp_path, monkeypatch):
        repo = SQLiteTodoRepository(str(tmp_path / "t.db"))
        created = repo.create("owner", TodoCreate(title="x"))
        monkeypatch.setattr(repo, "_select_owned", lambda conn, owner_id, todo_id: None)
        with pytest.raises(StoreUnavailable):
            repo.create("owner", TodoCreate(title="y"))
        with pytest.raises(StoreUnavailable):
            repo.update("owner", created["id"], {"completed": True})

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "todos.db"
        SQLiteTodoRepository(str(path))
        assert path.exists()

    def test_update_with_no_fields_only_touches_timestamp(self, tmp_path):
        repo = SQLiteTodoRepository(str(tmp_path / "t.db"))
        created = repo.create("owner", TodoCreate(title="Same"))
        updated = repo.update("owner", created["id"], {})
        assert updated is not None
        assert updated["title"] == "Same"
        assert updated["updated_at"] >= created["updated_at"]
        assert repo.update("someone-else", created["id"], {}) is None
