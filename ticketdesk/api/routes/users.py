# ticketdesk/api/routes/users.py
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func

from ticketdesk.api.deps import DBDep, UserDep, require_agent
from ticketdesk.core.security import hash_password
from ticketdesk.db.models import Role, User
from ticketdesk.schemas.users import PermissionsOut, UserOut, UsersPage, UserUpdateSelf
from ticketdesk.services.auth import serialize_user
from ticketdesk.services.permissions import permissions_for, resolve_role
from ticketdesk.services.tickets import ASSIGNABLE_ROLES

router = APIRouter()


# ---------- SELF ----------
@router.get("/me", response_model=UserOut)
async def get_me(current: UserDep):
    return UserOut(**serialize_user(current))


@router.patch("/me", response_model=UserOut)
async def update_me(payload: UserUpdateSelf, db: DBDep, current: UserDep):
    changed = False

    if payload.name is not None:
        current.name = payload.name
        changed = True

    if payload.password:
        current.password_hash = hash_password(payload.password)
        changed = True

    if not changed:
        return UserOut(**serialize_user(current))

    current.updated_at = func.now()
    await db.commit()
    await db.refresh(current)
    return UserOut(**serialize_user(current))


@router.get("/me/permissions", response_model=PermissionsOut)
async def my_permissions(current: UserDep):
    role = resolve_role(current.role)
    return PermissionsOut(role=role.value if role else "unknown", **asdict(permissions_for(role)))


# ---------- AGENT / ADMIN ----------
@router.get("", response_model=UsersPage, dependencies=[Depends(require_agent())])
async def list_users(
    db: DBDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    q: Optional[str] = Query(None, description="search by email/name"),
    role: Optional[Role] = Query(None, description="user|agent|admin"),
    is_active: Optional[bool] = Query(None),
):
    stmt = select(User)
    if q:
        like = f"%{q.lower()}%"
        stmt = stmt.where(func.lower(User.email).like(like) | func.lower(User.name).like(like))
    if role:
        stmt = stmt.where(User.role == role)
    if is_active is not None:
        stmt = stmt.where(User.is_active == is_active)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    rows = (await db.execute(stmt.order_by(User.id.asc()).limit(limit).offset((page - 1) * limit))).scalars().all()

    return UsersPage(
        items=[UserOut(**serialize_user(u)) for u in rows],
        total=int(total or 0),
        page=page,
        limit=limit,
    )


@router.get("/assignable", response_model=list[UserOut], dependencies=[Depends(require_agent())])
async def list_assignable(db: DBDep):
    """Кандидати у виконавці: активні agent/admin."""
    rows = (await db.execute(
        select(User)
        .where(User.role.in_(ASSIGNABLE_ROLES), User.is_active == True)  # noqa: E712
        .order_by(User.name.asc(), User.email.asc())
    )).scalars().all()
    return [UserOut(**serialize_user(u)) for u in rows]


@router.get("/{user_id}", response_model=UserOut, dependencies=[Depends(require_agent())])
async def get_user(user_id: int, db: DBDep):
    u = await db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return UserOut(**serialize_user(u))
