# ticketdesk/services/auth.py
from __future__ import annotations
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.config import settings
from ticketdesk.core.security import hash_password, create_access_token
from ticketdesk.db.models import User, Role
from ticketdesk.services.display import role_display


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email.strip().lower()))
    return res.scalar_one_or_none()


async def register_user(
    db: AsyncSession, *, email: str, password: str, full_name: str | None = None
) -> User:
    """Реєстрація завжди з role=user; дублікат → ValueError."""
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise ValueError("user_exists")
    user = User(
        email=email,
        password_hash=hash_password(password),
        role=Role.user,
        is_active=True,
        name=full_name,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def serialize_user(user: User) -> dict:
    role_value = getattr(user.role, "value", user.role)  # Enum → str
    return {
        "id": user.id,
        "email": user.email,
        "role": str(role_value),
        "role_label": role_display(user.role),
        "name": user.name,
        "is_active": user.is_active,
    }


def make_token_for_user(user: User, *, remember_me: bool = False) -> str:
    role_value = getattr(user.role, "value", user.role)
    minutes = settings.jwt_remember_expires_min if remember_me else settings.jwt_expires_min
    return create_access_token(
        subject=user.email,
        role=str(role_value),
        secret=settings.jwt_secret,
        expires_minutes=minutes,
        algorithm=settings.jwt_alg,
    )
