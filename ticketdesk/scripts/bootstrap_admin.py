from __future__ import annotations

import argparse
import asyncio
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.config import settings
from ticketdesk.core.security import hash_password
from ticketdesk.db.models import Role, User
from ticketdesk.db.session import AsyncSessionLocal, engine


async def _ensure_user(
    db: AsyncSession,
    *,
    email: str,
    role: Role,
    password_plain: Optional[str],
    name: Optional[str],
) -> User:
    """
    Немає користувача: створює (потрібен password_plain).
    Є: вирівнює роль/ім'я та активує; пароль не чіпає.
    """
    email = email.strip().lower()
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if user is None:
        if not password_plain:
            raise ValueError(f"Не задано пароль для нового користувача {email}")
        user = User(
            email=email,
            password_hash=hash_password(password_plain),
            role=role,
            is_active=True,
            name=name,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        print(f"[bootstrap] створено користувача: {email} ({role.value})")
        return user

    updated = False
    if user.role != role:
        user.role = role
        updated = True
    if name and user.name != name:
        user.name = name
        updated = True
    if not user.is_active:
        user.is_active = True
        updated = True

    if updated:
        await db.commit()
        print(f"[bootstrap] оновлено користувача: {email}")
    else:
        print(f"[bootstrap] існує без змін: {email} ({user.role.value})")
    return user


async def _seed(
    *,
    admin_email: str,
    admin_password: str,
    admin_name: Optional[str],
    make_demo_agent: bool,
    make_demo_user: bool,
) -> None:
    async with AsyncSessionLocal() as db:
        await _ensure_user(db, email=admin_email, role=Role.admin, password_plain=admin_password, name=admin_name)
        if make_demo_agent:
            await _ensure_user(db, email="agent@example.com", role=Role.agent, password_plain="Agent123!", name="Agent")
        if make_demo_user:
            await _ensure_user(db, email="user@example.com", role=Role.user, password_plain="User123!", name="User")
    await engine.dispose()
    print("[bootstrap] завершено")


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed admin та демо-користувачів")
    p.add_argument("email", nargs="?", default=settings.admin_email, help="Email адміністратора")
    p.add_argument("password", nargs="?", default=settings.admin_password, help="Пароль адміністратора")
    p.add_argument("-n", "--name", default=settings.admin_name, help="Ім'я адміністратора")

    p.add_argument("--demo-agent", dest="demo_agent", action="store_true", help="Створити demo-агента")
    p.add_argument("--no-demo-agent", dest="demo_agent", action="store_false", help="Не створювати demo-агента")
    p.set_defaults(demo_agent=settings.create_demo_agent)

    p.add_argument("--demo-user", dest="demo_user", action="store_true", help="Створити demo-користувача")
    p.add_argument("--no-demo-user", dest="demo_user", action="store_false", help="Не створювати demo-користувача")
    p.set_defaults(demo_user=settings.create_demo_user)

    return p.parse_args()


def main() -> None:
    args = _parse_args()

    if not args.email:
        raise SystemExit("Помилка: не задано email адміністратора (аргумент або ADMIN_EMAIL у .env)")
    if not args.password:
        raise SystemExit("Помилка: не задано пароль адміністратора (аргумент або ADMIN_PASSWORD у .env)")

    asyncio.run(
        _seed(
            admin_email=args.email,
            admin_password=args.password,
            admin_name=args.name,
            make_demo_agent=args.demo_agent,
            make_demo_user=args.demo_user,
        )
    )


if __name__ == "__main__":
    main()
