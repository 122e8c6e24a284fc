"""
Спільні фікстури: тимчасова SQLite-база на тест, засіяні користувачі,
TestClient з підміненою залежністю get_session.
"""
import os

# до імпорту ticketdesk: settings читаються один раз при імпорті
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["NOTIFICATIONS_ENABLED"] = "false"

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from ticketdesk.core.config import settings  # noqa: E402
from ticketdesk.core.security import create_access_token, hash_password  # noqa: E402
from ticketdesk.db.base import Base  # noqa: E402
from ticketdesk.db.models import Role, User  # noqa: E402
from ticketdesk.db.session import get_session  # noqa: E402
from ticketdesk.main import app  # noqa: E402

PASSWORD = "Passw0rd!"

SEED_USERS = {
    "admin": ("admin@example.com", Role.admin, "Admin"),
    "agent": ("agent@example.com", Role.agent, "Agent One"),
    "agent2": ("agent2@example.com", Role.agent, "Agent Two"),
    "user": ("user@example.com", Role.user, "User One"),
    "other": ("other@example.com", Role.user, "User Two"),
}


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt повільний: рахуємо один раз
    return hash_password(PASSWORD)


@pytest.fixture
def sync_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'ticketdesk.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(sync_engine):
    """Синхронна сесія для перевірки стану БД напряму."""
    with Session(sync_engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture
def users(sync_engine, password_hash):
    out = {}
    with Session(sync_engine, expire_on_commit=False) as s:
        for key, (email, role, name) in SEED_USERS.items():
            u = User(email=email, password_hash=password_hash, role=role, name=name, is_active=True)
            s.add(u)
            s.flush()
            out[key] = SimpleNamespace(id=u.id, email=email, role=role, name=name)
        s.commit()
    return out


@pytest.fixture
def client(sync_engine, users):
    async_engine = create_async_engine(
        str(sync_engine.url).replace("sqlite://", "sqlite+aiosqlite://", 1),
        poolclass=NullPool,
    )
    SessionLocal = async_sessionmaker(async_engine, expire_on_commit=False)

    async def _session():
        async with SessionLocal() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def token_for(user) -> str:
    return create_access_token(
        subject=user.email,
        role=user.role.value,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_alg,
    )


@pytest.fixture
def auth(users):
    """auth("agent") → заголовки з Bearer-токеном цього користувача."""
    def _headers(key: str) -> dict:
        return {"Authorization": f"Bearer {token_for(users[key])}"}
    return _headers


@pytest.fixture
def make_ticket(client, auth):
    def _make(who: str = "user", **fields) -> dict:
        body = {
            "title": "Printer is broken",
            "description": "The office printer shows error E42 on every job.",
            "priority": "medium",
            **fields,
        }
        r = client.post("/api/tickets", json=body, headers=auth(who))
        assert r.status_code == 201, r.text
        return r.json()
    return _make


@pytest.fixture
def transition(client, auth):
    def _go(who: str, ticket_id: int, to_status: str):
        return client.post(
            f"/api/tickets/{ticket_id}/transition",
            json={"to_status": to_status},
            headers=auth(who),
        )
    return _go
