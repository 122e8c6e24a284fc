# ticketdesk/api/routes/admin.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select

from ..deps import DBDep, UserDep, require_permission
from ticketdesk.db.models import User
from ticketdesk.schemas.users import UserAdminUpdate, UserOut
from ticketdesk.services.auth import serialize_user
from ticketdesk.services.permissions import resolve_role
from ticketdesk.services.tickets import ASSIGNABLE_ROLES, release_assignments

router = APIRouter()

manage_users = require_permission("can_manage_users")


@router.get("/users", dependencies=[Depends(manage_users)], response_model=list[UserOut])
async def list_users(db: DBDep):
    # разом із деактивованими
    rows = (await db.execute(select(User).order_by(User.id.asc()))).scalars().all()
    return [UserOut(**serialize_user(u)) for u in rows]


@router.patch("/users/{user_id}", dependencies=[Depends(manage_users)], response_model=UserOut)
async def admin_update_user(user_id: int, payload: UserAdminUpdate, db: DBDep, current: UserDep):
    u = await db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")

    # не даємо адміну розжалувати/вимкнути самого себе
    if u.id == current.id and (payload.role is not None or payload.is_active is False):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own role or deactivate yourself",
        )

    changed = False
    if payload.name is not None:
        u.name = payload.name
        changed = True
    if payload.is_active is not None:
        u.is_active = payload.is_active
        changed = True
    if payload.role is not None:
        u.role = payload.role
        changed = True
        # assigned_to лише на agent/admin: знімаємо всі призначення
        if resolve_role(payload.role) not in ASSIGNABLE_ROLES:
            await release_assignments(db, u.id, keep_closed=False)
    if payload.is_active is False:
        await release_assignments(db, u.id, keep_closed=True)

    if changed:
        u.updated_at = func.now()
        await db.commit()
        await db.refresh(u)
    return UserOut(**serialize_user(u))


@router.delete("/users/{user_id}", dependencies=[Depends(manage_users)])
async def delete_user(user_id: int, db: DBDep, current: UserDep):
    """
    М'яке видалення: is_active = False.
    Заявки та коментарі користувача лишаються.
    """
    u = await db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")

    if u.id == current.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        )

    u.is_active = False
    await release_assignments(db, u.id, keep_closed=True)
    await db.commit()
    return {"ok": True}
