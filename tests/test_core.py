"""
Unit tests for settings parsing, JWT helpers, the log formatter and the UI mount.
Run: pytest tests/test_core.py -v
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from pydantic import ValidationError

from ticketdesk.core.config import Settings
from ticketdesk.core.logging import ExtraFormatter, LOG_FORMAT
from ticketdesk.core.security import create_access_token, decode_token
from ticketdesk.main import _mount_ui


class TestSettings:
    def test_cors_from_comma_list(self):
        s = Settings(cors_origins="http://a.test, http://b.test,")
        assert s.cors_origins == ["http://a.test", "http://b.test"]

    def test_cors_from_json_list(self):
        s = Settings(cors_origins='["http://a.test", "http://b.test"]')
        assert s.cors_origins == ["http://a.test", "http://b.test"]

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_prod_requires_secret(self):
        with pytest.raises(ValidationError):
            Settings(env="prod", jwt_secret="changeme")
        assert Settings(env="prod", jwt_secret="s3cr3t").env == "prod"

    def test_sync_database_url(self):
        pg = Settings(database_url="postgresql+asyncpg://app:app@db:5432/ticketdesk")
        assert pg.sync_database_url == "postgresql+psycopg2://app:app@db:5432/ticketdesk"
        lite = Settings(database_url="sqlite+aiosqlite:///./dev.db")
        assert lite.sync_database_url == "sqlite:///./dev.db"


class TestTokens:
    def test_decode_valid(self):
        token = create_access_token(subject="a@example.com", role="agent", secret="k")
        payload = decode_token(token, "k")
        assert payload.sub == "a@example.com"
        assert payload.role == "agent"

    def test_wrong_secret(self):
        token = create_access_token(subject="a@example.com", role="agent", secret="k")
        with pytest.raises(ValueError):
            decode_token(token, "other")

    def test_expired(self):
        token = create_access_token(subject="a@example.com", role="agent", secret="k", expires_minutes=-5)
        with pytest.raises(ValueError):
            decode_token(token, "k")

    def test_not_an_access_token(self):
        token = jwt.encode({"sub": "a@example.com", "role": "user", "type": "refresh", "iat": 0, "exp": 2**31}, "k")
        with pytest.raises(ValueError):
            decode_token(token, "k")


class TestExtraFormatter:
    def _record(self, **extra):
        record = logging.LogRecord("ticketdesk.test", logging.INFO, __file__, 1, "status_changed", None, None)
        for k, v in extra.items():
            setattr(record, k, v)
        return record

    def test_appends_extra_fields(self):
        line = ExtraFormatter(fmt=LOG_FORMAT).format(self._record(ticket_id=7, to_status="closed"))
        assert line.endswith('status_changed ticket_id=7 to_status="closed"')

    def test_plain_without_extra(self):
        line = ExtraFormatter(fmt=LOG_FORMAT).format(self._record())
        assert line.endswith("INFO ticketdesk.test status_changed")


class TestUiMount:
    def test_serves_build(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>TicketDesk</h1>")
        app = FastAPI(openapi_url=None)
        _mount_ui(app, tmp_path)

        with TestClient(app) as c:
            r = c.get("/")
            assert r.status_code == 200
            assert "TicketDesk" in r.text
            assert c.get("/missing.js").status_code == 404
        # лише StaticFiles, без catch-all маршруту
        assert [route.name for route in app.routes] == ["ui"]

    def test_placeholder_without_build(self, tmp_path):
        app = FastAPI()
        _mount_ui(app, tmp_path / "dist")
        with TestClient(app) as c:
            assert c.get("/").json()["ui"] == "not built"
