import json

import pytest

from todo_api.generate_openapi import build_schema, generate_openapi
from todo_api.settings import get_settings
from todo_api.utils import page_offset, pagination_info


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "PERSISTENCE_BACKEND",
            "SQLITE_DB_PATH",
            "CORS_ALLOW_ORIGINS",
            "JWT_SECRET",
            "JWT_EXPIRE_MINUTES",
            "LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.sqlite_db_path == "./data/todos.db"
        assert settings.cors_allow_origins == ["*"]
        assert settings.jwt_expire_minutes == 60 * 24 * 7
        assert settings.log_level == "INFO"
        # a random key is generated when none is configured
        assert len(settings.jwt_secret) >= 32

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", " SQLite ")
        monkeypatch.setenv("SQLITE_DB_PATH", "/tmp/x.db")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("JWT_SECRET", "configured")
        monkeypatch.setenv("JWT_EXPIRE_MINUTES", "15")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = get_settings()
        assert settings.persistence_backend == "sqlite"
        assert settings.sqlite_db_path == "/tmp/x.db"
        assert settings.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert settings.jwt_secret == "configured"
        assert settings.jwt_expire_minutes == 15
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_bad_expiry_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("JWT_EXPIRE_MINUTES", value)
        assert get_settings().jwt_expire_minutes == 60 * 24 * 7

    def test_unknown_backend_falls_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "mongo")
        assert get_settings().persistence_backend == "memory"


class TestPaginationInfo:
    def test_exact_multiple(self):
        info = pagination_info(page=2, page_size=5, total=10)
        assert info["total_pages"] == 2
        assert info["has_next_page"] is False
        assert info["has_prev_page"] is True

    def test_remainder_rounds_up(self):
        assert pagination_info(page=1, page_size=6, total=15)["total_pages"] == 3

    def test_offsets(self):
        assert page_offset(1, 6) == 0
        assert page_offset(3, 6) == 12


class TestOpenApiExport:
    def test_schema_lists_routes_and_tags(self):
        schema = build_schema()
        assert {"/accounts", "/accounts/me", "/sessions", "/todos", "/todos/{todo_id}"} <= set(schema["paths"])
        assert {t["name"] for t in schema["tags"]} >= {"health", "accounts", "sessions", "todos"}
        assert "HTTPBearer" in schema["components"]["securitySchemes"]

    def test_writes_file(self, tmp_path):
        out = tmp_path / "interfaces" / "openapi.json"
        written = generate_openapi(str(out))
        assert written == str(out)
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["info"]["title"] == "Todo Vault"
