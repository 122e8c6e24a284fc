"""
Reports service

Агреговані зрізи по заявках для аналітики. Без snapshot-таблиці.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ticketdesk.core.enums import CommentTypeEnum
from ticketdesk.db.models import Comment, Ticket, Status, Priority
from ticketdesk.schemas.reports import ActivityOut
from ticketdesk.schemas.tickets import TicketStats

PREVIEW_CHARS = 50


def _enum_key(v):
    # string-значення навіть якщо SQLAlchemy віддасть Enum-об'єкт
    return v.value if hasattr(v, "value") else v


def _as_utc(v: datetime) -> datetime:
    # sqlite повертає naive, postgres: aware
    return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


async def ticket_stats(db: AsyncSession, *, user_id: Optional[int] = None) -> TicketStats:
    """Кількість по статусах; user_id обмежує вибірку заявками, де він автор або виконавець."""
    q = select(Ticket.status, func.count()).group_by(Ticket.status)
    if user_id is not None:
        q = q.where((Ticket.created_by == user_id) | (Ticket.assigned_to == user_id))
    rows = (await db.execute(q)).all()

    counts = {_enum_key(s): int(c) for s, c in rows}
    return TicketStats(total=sum(counts.values()), **{s.value: counts.get(s.value, 0) for s in Status})


async def latest_report(db: AsyncSession, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Простий звіт:
      - розподіл за статусом і пріоритетом
      - скільки закрито за останні 24 години (за closed_at)
      - середній час вирішення (хв) по заявках з resolved_at
    """
    now = now or datetime.now(timezone.utc)

    by_status_rows = (await db.execute(
        select(Ticket.status, func.count()).group_by(Ticket.status)
    )).all()
    by_priority_rows = (await db.execute(
        select(Ticket.priority, func.count()).group_by(Ticket.priority)
    )).all()

    resolved_rows = (await db.execute(
        select(Ticket.created_at, Ticket.resolved_at)
        .where(Ticket.resolved_at.isnot(None))
    )).all()
    closed_rows = (await db.execute(
        select(Ticket.closed_at)
        .where(Ticket.status == Status.closed, Ticket.closed_at.isnot(None))
    )).scalars().all()

    durations = [
        (_as_utc(resolved_at) - _as_utc(created_at)).total_seconds() / 60.0
        for created_at, resolved_at in resolved_rows
    ]
    since = now - timedelta(hours=24)
    closed_24h = sum(1 for closed_at in closed_rows if _as_utc(closed_at) >= since)

    return {
        "by_status": {s.value: 0 for s in Status} | {_enum_key(s): c for s, c in by_status_rows},
        "by_priority": {p.value: 0 for p in Priority} | {_enum_key(p): c for p, c in by_priority_rows},
        "closed_last_24h": closed_24h,
        "avg_resolution_minutes": round(sum(durations) / len(durations), 1) if durations else None,
        "generated_at": now.isoformat(),
    }


def _preview(text: str) -> str:
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."


def _who(user) -> str:
    if user is None:
        return "Unknown User"
    return user.name or user.email


async def recent_activity(db: AsyncSession, *, limit: int = 10) -> list[ActivityOut]:
    """
    Стрічка подій для аналітики, новіші першими:
      - створені заявки
      - зміни статусу (системні коментарі аудиту)
      - публічні коментарі
    Внутрішні коментарі сюди не потрапляють.
    """
    tickets = (await db.execute(
        select(Ticket)
        .options(selectinload(Ticket.creator))
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .limit(limit)
    )).scalars().all()
    comments = (await db.execute(
        select(Comment)
        .options(selectinload(Comment.author), selectinload(Comment.ticket))
        .where(Comment.is_internal == False)  # noqa: E712
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .limit(limit)
    )).scalars().all()

    items: list[ActivityOut] = [
        ActivityOut(
            id=f"ticket-created-{t.id}",
            type="ticket_created",
            description=f'New ticket created: "{t.title}"',
            details=f"Priority: {_enum_key(t.priority)}, Status: {_enum_key(t.status)}",
            user=_who(t.creator),
            timestamp=_as_utc(t.created_at),
            ticket_id=t.id,
        )
        for t in tickets
    ]
    for c in comments:
        title = c.ticket.title if c.ticket else "ticket"
        if c.comment_type == CommentTypeEnum.system:
            items.append(ActivityOut(
                id=f"status-{c.id}",
                type="status_changed",
                description=f'Ticket updated: "{title}"',
                details=c.content,
                user=_who(c.author),
                timestamp=_as_utc(c.created_at),
                ticket_id=c.ticket_id,
            ))
        else:
            items.append(ActivityOut(
                id=f"comment-{c.id}",
                type="comment_added",
                description=f'Comment added to "{title}"',
                details=_preview(c.content),
                user=_who(c.author),
                timestamp=_as_utc(c.created_at),
                ticket_id=c.ticket_id,
            ))

    # стабільно: при однаковому часі тримаємо порядок вставки
    items.sort(key=lambda a: a.timestamp, reverse=True)
    return items[:limit]
