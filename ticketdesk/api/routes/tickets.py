# ticketdesk/api/routes/tickets.py
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import Response
from sqlalchemy import case, func, select
from sqlalchemy.orm import selectinload

from ..deps import DBDep, UserDep
from ticketdesk.core.enums import NotificationTypeEnum
from ticketdesk.core.logging import log_extra
from ticketdesk.db.models import Priority, Status, Ticket, User
from ticketdesk.schemas.tickets import (
    DisplayOut,
    PriorityDisplayOut,
    TicketCreate,
    TicketDetailOut,
    TicketOut,
    TicketsPage,
    TicketStats,
    TicketUpdate,
    TransitionIn,
    TransitionOut,
)
from ticketdesk.services.display import PRIORITY_DISPLAY, priority_display, status_display
from ticketdesk.services.notifications import enqueue, notify_ticket_event
from ticketdesk.services.permissions import can_access_ticket, can_edit_ticket, permissions_for
from ticketdesk.services.reports import ticket_stats
from ticketdesk.services.tickets import (
    TransitionDenied,
    apply_transition,
    get_assignable_user,
    ticket_event_payload,
)
from ticketdesk.services.workflow import valid_transitions

router = APIRouter()
logger = logging.getLogger(__name__)

SortField = Literal["created_at", "updated_at", "priority", "title", "status"]

_PRIORITY_WEIGHT = case(
    *[(Ticket.priority == p, PRIORITY_DISPLAY[p].weight) for p in Priority],
    else_=0,
)

# creator/assignee потрібні TicketOut; lazy load в async-сесії недоступний
TICKET_PROFILES = (selectinload(Ticket.creator), selectinload(Ticket.assignee))


def _actor_name(u: User) -> str:
    return u.name or u.email


def _detail(t: Ticket) -> TicketDetailOut:
    return TicketDetailOut(
        **TicketOut.model_validate(t).model_dump(),
        status_info=DisplayOut(**asdict(status_display(t.status))),
        priority_info=PriorityDisplayOut(**asdict(priority_display(t.priority))),
    )


async def _get_ticket(db: DBDep, ticket_id: int, current: User) -> Ticket:
    t = await db.get(Ticket, ticket_id, options=TICKET_PROFILES)
    if not t:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if not can_access_ticket(current.role, current.id, t):
        raise HTTPException(status_code=403, detail="Forbidden")
    return t


async def _reload(db: DBDep, ticket_id: int) -> Ticket:
    """Свіжий стан після commit разом із профілями (assigned_to міг змінитись)."""
    q = (
        select(Ticket)
        .options(*TICKET_PROFILES)
        .where(Ticket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(q)).scalar_one()


async def _resolve_assignee(db: DBDep, current: User, assignee_id: int) -> User:
    if not permissions_for(current.role).can_assign_tickets:
        raise HTTPException(status_code=403, detail="Only agent/admin can assign tickets")
    assignee = await get_assignable_user(db, assignee_id)
    if assignee is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="assigned_to must reference an active agent or admin",
        )
    return assignee


@router.post("", response_model=TicketDetailOut, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreate, request: Request, db: DBDep, current: UserDep):
    assignee = None
    if payload.assigned_to is not None:
        assignee = await _resolve_assignee(db, current, payload.assigned_to)

    t = Ticket(
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        status=Status.open,
        created_by=current.id,
        assigned_to=assignee.id if assignee else None,
    )
    db.add(t)
    await db.flush()

    if assignee is not None:
        notify_ticket_event(
            db,
            ticket_id=t.id,
            type_=NotificationTypeEnum.assignment,
            actor_id=current.id,
            actor_name=_actor_name(current),
            recipient_ids=[assignee.id],
            title=f"Ticket #{t.id} assigned to you",
            message=t.title,
        )

    await db.commit()
    t = await _reload(db, t.id)

    logger.info("ticket_created", extra=log_extra(request, ticket_id=t.id, actor_id=current.id))
    enqueue("ticket_created", {"ticket": ticket_event_payload(t), "author": current.email})
    return _detail(t)


@router.get("", response_model=TicketsPage)
async def list_tickets(
    db: DBDep,
    current: UserDep,
    status_: Status | None = Query(default=None, alias="status"),
    priority: Priority | None = None,
    assigned_to: str | None = Query(default=None, description="user id або 'unassigned'"),
    created_by: int | None = None,
    search: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    sort_by: SortField = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    q = select(Ticket)
    if not permissions_for(current.role).can_view_all_tickets:
        q = q.where((Ticket.created_by == current.id) | (Ticket.assigned_to == current.id))
    if status_:
        q = q.where(Ticket.status == status_)
    if priority:
        q = q.where(Ticket.priority == priority)
    if assigned_to:
        if assigned_to == "unassigned":
            q = q.where(Ticket.assigned_to.is_(None))
        elif assigned_to.isdigit():
            q = q.where(Ticket.assigned_to == int(assigned_to))
        else:
            raise HTTPException(status_code=422, detail="assigned_to must be a user id or 'unassigned'")
    if created_by is not None:
        q = q.where(Ticket.created_by == created_by)
    if search:
        like = f"%{search.strip()}%"
        q = q.where(Ticket.title.ilike(like) | Ticket.description.ilike(like))
    if date_from:
        q = q.where(Ticket.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))
    if date_to:
        # включно з усім днем date_to
        q = q.where(Ticket.created_at < datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc))

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar_one()

    sort_col = _PRIORITY_WEIGHT if sort_by == "priority" else getattr(Ticket, sort_by)
    ordered = sort_col.asc() if sort_order == "asc" else sort_col.desc()
    q = (
        q.options(*TICKET_PROFILES)
        .order_by(ordered, Ticket.created_at.desc(), Ticket.id.desc())
        .limit(limit)
        .offset(offset)
    )

    rows = (await db.execute(q)).scalars().all()
    return TicketsPage(
        items=[TicketOut.model_validate(t) for t in rows],
        total=int(total or 0),
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=TicketStats)
async def get_stats(db: DBDep, current: UserDep):
    scope = None if permissions_for(current.role).can_view_all_tickets else current.id
    return await ticket_stats(db, user_id=scope)


@router.get("/{ticket_id}", response_model=TicketDetailOut)
async def get_ticket(ticket_id: int, db: DBDep, current: UserDep):
    return _detail(await _get_ticket(db, ticket_id, current))


@router.patch("/{ticket_id}", response_model=TicketDetailOut)
async def patch_ticket(ticket_id: int, payload: TicketUpdate, request: Request, db: DBDep, current: UserDep):
    t = await _get_ticket(db, ticket_id, current)
    sent = payload.model_fields_set

    # --- title / description / priority ---
    edits = {k: getattr(payload, k) for k in ("title", "description", "priority") if k in sent}
    edits = {k: v for k, v in edits.items() if v is not None}
    if edits:
        if not can_edit_ticket(current.role, current.id, t):
            raise HTTPException(status_code=403, detail="Not allowed to edit this ticket")
        for k, v in edits.items():
            setattr(t, k, v)

    # --- призначення (null = зняти виконавця) ---
    new_assignee = None
    if "assigned_to" in sent:
        if payload.assigned_to is None:
            if not permissions_for(current.role).can_assign_tickets:
                raise HTTPException(status_code=403, detail="Only agent/admin can assign tickets")
            t.assigned_to = None
        else:
            assignee = await _resolve_assignee(db, current, payload.assigned_to)
            if assignee.id != t.assigned_to:
                t.assigned_to = assignee.id
                new_assignee = assignee

    if new_assignee is not None:
        notify_ticket_event(
            db,
            ticket_id=t.id,
            type_=NotificationTypeEnum.assignment,
            actor_id=current.id,
            actor_name=_actor_name(current),
            recipient_ids=[new_assignee.id],
            title=f"Ticket #{t.id} assigned to you",
            message=t.title,
        )

    t.updated_at = func.now()
    await db.commit()
    t = await _reload(db, t.id)

    if new_assignee is not None:
        logger.info("ticket_assigned", extra=log_extra(request, ticket_id=t.id, assignee_id=new_assignee.id))
        enqueue("ticket_assigned", {"ticket": ticket_event_payload(t), "assignee": new_assignee.email})
    return _detail(t)


@router.delete("/{ticket_id}", status_code=204)
async def delete_ticket(ticket_id: int, request: Request, db: DBDep, current: UserDep):
    t = await _get_ticket(db, ticket_id, current)
    if not permissions_for(current.role).can_delete_tickets:
        raise HTTPException(status_code=403, detail="Not allowed to delete tickets")

    await db.delete(t)
    await db.commit()
    logger.info("ticket_deleted", extra=log_extra(request, ticket_id=ticket_id, actor_id=current.id))
    return Response(status_code=204)


# --- WORKFLOW -----------------------------------------------------------------

@router.get("/{ticket_id}/transitions", response_model=list[TransitionOut])
async def list_transitions(ticket_id: int, db: DBDep, current: UserDep):
    """Дії зі статусом, доступні поточному користувачу (для кнопок у UI)."""
    t = await _get_ticket(db, ticket_id, current)
    return [
        TransitionOut(
            from_status=tr.from_status,
            to_status=tr.to_status,
            label=tr.label,
            description=tr.description,
        )
        for tr in valid_transitions(t.status, current.role, current.id, t)
    ]


@router.post("/{ticket_id}/transition", response_model=TicketDetailOut)
async def transition_ticket(
    ticket_id: int, payload: TransitionIn, request: Request, db: DBDep, current: UserDep
):
    """
    Зміна статусу. Перевірка: той самий резолвер, що й у /transitions,
    тож підроблений запит отримує 403, а не тихий запис.
    """
    t = await _get_ticket(db, ticket_id, current)
    try:
        old = apply_transition(db, t, payload.to_status, current)
    except TransitionDenied as e:
        logger.info(
            "transition_denied",
            extra=log_extra(request, ticket_id=t.id, from_status=e.src.value,
                            to_status=e.dst.value, actor_id=current.id),
        )
        raise HTTPException(status_code=403, detail=e.message)

    new = payload.to_status
    notify_ticket_event(
        db,
        ticket_id=t.id,
        type_=NotificationTypeEnum.status_update,
        actor_id=current.id,
        actor_name=_actor_name(current),
        recipient_ids=[t.created_by, t.assigned_to],
        title=f"Ticket #{t.id} status updated",
        message=f"{status_display(old).label} → {status_display(new).label}: {t.title}",
    )

    await db.commit()
    t = await _reload(db, t.id)

    logger.info(
        "status_changed",
        extra=log_extra(request, ticket_id=t.id, from_status=old.value, to_status=new.value, actor_id=current.id),
    )
    enqueue("status_changed", {
        "ticket": ticket_event_payload(t),
        "from": old.value,
        "to": new.value,
        "actor": current.email,
    })
    return _detail(t)
