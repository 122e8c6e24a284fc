from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from sqlalchemy import select

from ..deps import DBDep, UserDep
from ticketdesk.core.enums import CommentTypeEnum, NotificationTypeEnum
from ticketdesk.core.logging import log_extra
from ticketdesk.db.models import Comment, Role, Ticket, User
from ticketdesk.schemas.comments import CommentCreate, CommentOut, CommentUpdate
from ticketdesk.services.notifications import enqueue, notify_ticket_event
from ticketdesk.services.permissions import can_access_ticket, resolve_role

router = APIRouter()
logger = logging.getLogger(__name__)


def _is_staff(u: User) -> bool:
    return resolve_role(u.role) in {Role.agent, Role.admin}


async def _get_ticket(db: DBDep, ticket_id: int, current: User) -> Ticket:
    t = await db.get(Ticket, ticket_id)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if not can_access_ticket(current.role, current.id, t):
        raise HTTPException(status_code=403, detail="Forbidden")
    return t


async def _get_comment(db: DBDep, ticket_id: int, comment_id: int) -> Comment:
    c = (await db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.ticket_id == ticket_id)
    )).scalar_one_or_none()
    if not c:
        raise HTTPException(status_code=404, detail="Comment not found")
    if c.comment_type == CommentTypeEnum.system:
        raise HTTPException(status_code=403, detail="System comments cannot be modified")
    return c


@router.post("/{ticket_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(ticket_id: int, payload: CommentCreate, request: Request, db: DBDep, current: UserDep):
    t = await _get_ticket(db, ticket_id, current)
    if payload.is_internal and not _is_staff(current):
        raise HTTPException(status_code=403, detail="Internal comments only for agent/admin")

    c = Comment(
        ticket_id=t.id,
        user_id=current.id,
        content=payload.content,
        comment_type=CommentTypeEnum.internal if payload.is_internal else CommentTypeEnum.comment,
        is_internal=payload.is_internal,
    )
    db.add(c)

    # внутрішні нотатки автору-користувачу не показуємо
    recipients = [t.assigned_to] if payload.is_internal else [t.created_by, t.assigned_to]
    notify_ticket_event(
        db,
        ticket_id=t.id,
        type_=NotificationTypeEnum.comment,
        actor_id=current.id,
        actor_name=current.name or current.email,
        recipient_ids=recipients,
        title=f"New comment on ticket #{t.id}",
        message=payload.content[:200],
    )

    await db.commit()
    await db.refresh(c)

    logger.info("comment_added", extra=log_extra(request, ticket_id=t.id, comment_id=c.id))
    enqueue("comment_added", {"ticket_id": t.id, "comment_id": c.id, "is_internal": c.is_internal})
    return c


@router.get("/{ticket_id}/comments", response_model=list[CommentOut])
async def list_comments(ticket_id: int, db: DBDep, current: UserDep):
    await _get_ticket(db, ticket_id, current)

    q = select(Comment).where(Comment.ticket_id == ticket_id)
    if not _is_staff(current):
        q = q.where(Comment.is_internal == False)  # noqa: E712
    q = q.order_by(Comment.created_at.asc(), Comment.id.asc())
    return (await db.execute(q)).scalars().all()


@router.patch("/{ticket_id}/comments/{comment_id}", response_model=CommentOut)
async def update_comment(ticket_id: int, comment_id: int, payload: CommentUpdate, db: DBDep, current: UserDep):
    await _get_ticket(db, ticket_id, current)
    c = await _get_comment(db, ticket_id, comment_id)
    if c.user_id != current.id:
        raise HTTPException(status_code=403, detail="Only the author can edit a comment")
    if payload.is_internal and not _is_staff(current):
        raise HTTPException(status_code=403, detail="Internal comments only for agent/admin")

    c.content = payload.content
    c.is_internal = payload.is_internal
    c.comment_type = CommentTypeEnum.internal if payload.is_internal else CommentTypeEnum.comment
    await db.commit()
    await db.refresh(c)
    return c


@router.delete("/{ticket_id}/comments/{comment_id}", status_code=204)
async def delete_comment(ticket_id: int, comment_id: int, db: DBDep, current: UserDep):
    await _get_ticket(db, ticket_id, current)
    c = await _get_comment(db, ticket_id, comment_id)
    if c.user_id != current.id and resolve_role(current.role) != Role.admin:
        raise HTTPException(status_code=403, detail="Forbidden")

    await db.delete(c)
    await db.commit()
    return Response(status_code=204)
