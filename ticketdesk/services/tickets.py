"""
Tickets service (бізнес-правила запису заявок)

Сам state machine живе в services/workflow.py; тут: що відбувається з
записом, коли перехід дозволено: статус, SLA-поля resolved_at і closed_at,
авто-призначення та системний коментар для аудиту.
Роутери викликають ці функції, щоб не дублювати логіку.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.enums import CommentTypeEnum
from ticketdesk.db.models import Comment, Role, Status, Ticket, User
from ticketdesk.services.permissions import resolve_role
from ticketdesk.services.workflow import StatusTransition, can_transition, find_transition

# статуси, в яких робота вважається завершеною (SLA)
RESOLVED_STATES = {Status.resolved, Status.closed}
ASSIGNABLE_ROLES = {Role.agent, Role.admin}


class TransitionDenied(Exception):
    """Перехід не пропонується резолвером для цього користувача."""

    def __init__(self, src: Status, dst: Status, transition: StatusTransition | None):
        self.src = src
        self.dst = dst
        self.transition = transition
        super().__init__(f"{src.value} -> {dst.value}")

    @property
    def message(self) -> str:
        if self.transition is None:
            return f"Illegal status transition: {self.src.value} -> {self.dst.value}"
        return f"You cannot {self.transition.label.lower()} this ticket"


def status_comment(new_status: Status) -> str:
    return f"Ticket status changed to {new_status.value}"


def apply_transition(db: AsyncSession, ticket: Ticket, new_status: Status, actor: User) -> Status:
    """
    Переводить заявку в new_status від імені actor (без commit).
    Повертає попередній статус. TransitionDenied, якщо перехід не дозволено.
    """
    old = ticket.status
    if not can_transition(old, new_status, actor.role, actor.id, ticket):
        raise TransitionDenied(old, new_status, find_transition(old, new_status))

    ticket.status = new_status

    # SLA: фіксуємо перше завершення, скидаємо при поверненні в роботу
    if new_status in RESOLVED_STATES:
        if ticket.resolved_at is None:
            ticket.resolved_at = func.now()
    else:
        ticket.resolved_at = None

    # closed_at: саме момент закриття, навіть якщо resolved_at давній
    ticket.closed_at = func.now() if new_status == Status.closed else None

    # авто-assign: хто взяв у роботу неназначену заявку: той і виконавець
    if (
        new_status == Status.in_progress
        and ticket.assigned_to is None
        and resolve_role(actor.role) in ASSIGNABLE_ROLES
    ):
        ticket.assigned_to = actor.id

    ticket.updated_at = func.now()

    db.add(Comment(
        ticket_id=ticket.id,
        user_id=actor.id,
        content=status_comment(new_status),
        comment_type=CommentTypeEnum.system,
        is_internal=False,
    ))
    return old


async def get_assignable_user(db: AsyncSession, user_id: int) -> User | None:
    """Активний agent/admin з таким id або None."""
    res = await db.execute(
        select(User).where(
            User.id == user_id,
            User.is_active == True,  # noqa: E712
            User.role.in_(ASSIGNABLE_ROLES),
        )
    )
    return res.scalar_one_or_none()


async def release_assignments(db: AsyncSession, user_id: int, *, keep_closed: bool) -> int:
    """
    Знімає user_id з виконавців (без commit). Повертає кількість заявок.
    keep_closed=True: закриті заявки зберігають історичного виконавця.
    """
    q = update(Ticket).where(Ticket.assigned_to == user_id)
    if keep_closed:
        q = q.where(Ticket.status != Status.closed)
    res = await db.execute(q.values(assigned_to=None, updated_at=func.now()))
    return res.rowcount or 0


def ticket_event_payload(t: Ticket, **extra: Any) -> dict[str, Any]:
    """Серіалізація заявки для RQ-подій (тільки прості типи)."""
    return {
        "id": t.id,
        "title": t.title,
        "status": getattr(t.status, "value", str(t.status)),
        "priority": getattr(t.priority, "value", str(t.priority)),
        "created_by": t.created_by,
        "assigned_to": t.assigned_to,
        **extra,
    }
