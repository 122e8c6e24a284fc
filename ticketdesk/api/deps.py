from __future__ import annotations

from typing import Annotated, Dict
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.db.session import get_session
from ticketdesk.core.config import settings
from ticketdesk.core.security import decode_token
from ticketdesk.db.models import User, Role
from ticketdesk.services.permissions import RolePermissions, permissions_for, resolve_role

# Порядок прав: менше число = менше прав
ROLE_ORDER: Dict[Role, int] = {
    Role.user: 0,
    Role.agent: 1,
    Role.admin: 2,
}

# префікс /api задається в main.py, тому шлях повний
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# Тип для DI сесії БД
DBDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(
    db: DBDep,
    token: Annotated[str, Depends(oauth2_scheme)]
) -> User:
    """
    Декодує Bearer JWT, дістає користувача з БД і перевіряє активність.
    """
    try:
        payload = decode_token(token, settings.jwt_secret, settings.jwt_alg)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    res = await db.execute(select(User).where(User.email == payload.sub))
    user = res.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive or not found")
    return user


UserDep = Annotated[User, Depends(get_current_user)]


def require_min_role(min_role: Role):
    """
    Пускає користувачів з роллю не нижче за min_role (за ROLE_ORDER).
    Приклад: Depends(require_min_role(Role.agent))
    """
    min_rank = ROLE_ORDER[min_role]

    async def _guard(current: UserDep) -> User:
        rank = ROLE_ORDER.get(resolve_role(current.role), -1)
        if rank < min_rank:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current

    return _guard


def require_permission(flag: str):
    """
    Пускає, якщо в permissions_for(role) прапорець flag = True.
    Приклад: Depends(require_permission("can_view_analytics"))
    """
    if flag not in RolePermissions.__dataclass_fields__:
        raise ValueError(f"unknown permission flag: {flag}")

    async def _guard(current: UserDep) -> User:
        if not getattr(permissions_for(current.role), flag):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current

    return _guard


def require_agent():
    return require_min_role(Role.agent)
