from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import func, select, update

from ..deps import DBDep, UserDep
from ticketdesk.db.models import Notification
from ticketdesk.schemas.notifications import NotificationOut, UnreadCountOut

router = APIRouter()


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    db: DBDep,
    current: UserDep,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
):
    q = select(Notification).where(Notification.user_id == current.id)
    if unread_only:
        q = q.where(Notification.read == False)  # noqa: E712
    q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return (await db.execute(q)).scalars().all()


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(db: DBDep, current: UserDep):
    cnt = (await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == current.id, Notification.read == False)  # noqa: E712
    )).scalar_one()
    return UnreadCountOut(count=int(cnt or 0))


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: int, db: DBDep, current: UserDep):
    n = (await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == current.id,
        )
    )).scalar_one_or_none()
    if not n:
        raise HTTPException(status_code=404, detail="Notification not found")
    n.read = True
    await db.commit()
    await db.refresh(n)
    return n


@router.post("/read-all")
async def mark_all_read(db: DBDep, current: UserDep):
    res = await db.execute(
        update(Notification)
        .where(Notification.user_id == current.id, Notification.read == False)  # noqa: E712
        .values(read=True)
    )
    await db.commit()
    return {"ok": True, "updated": res.rowcount}
