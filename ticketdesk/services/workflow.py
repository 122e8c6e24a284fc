"""
Workflow заявок (state machine з урахуванням ролей)

Таблиця STATUS_TRANSITIONS: це і є політика: хто, з якого статусу і в який
може перевести заявку. Будь-яка зміна воркфлоу: це зміна таблиці, а не коду
нижче. Резолвер додає лише уточнення за власністю/призначенням.

Модуль чистий: без I/O і без глобального стану; роль та id користувача
передаються явно. Той самий код викликають і роут зі списком дій, і
серверна перевірка перед записом статусу.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from ticketdesk.core.enums import RoleEnum as Role
from ticketdesk.core.enums import TicketStatusEnum as Status
from ticketdesk.core.enums import coerce_enum
from ticketdesk.services.permissions import resolve_role


@dataclass(frozen=True)
class StatusTransition:
    from_status: Status
    to_status: Status
    allowed_roles: frozenset[Role]
    label: str
    description: str


@dataclass(frozen=True)
class TicketRef:
    """Мінімум полів заявки, потрібних резолверу."""
    created_by: Any
    assigned_to: Any = None


def _t(src: Status, dst: Status, roles: set[Role], label: str, description: str) -> StatusTransition:
    return StatusTransition(src, dst, frozenset(roles), label, description)


STATUS_TRANSITIONS: tuple[StatusTransition, ...] = (
    # open: рецензент бере в роботу, автор може закрити як дрібницю
    _t(Status.open, Status.in_progress, {Role.agent, Role.admin},
       "Start Working", "Move ticket to in progress (reviewer only)"),
    _t(Status.open, Status.closed, {Role.user},
       "Close as Trivial", "Close ticket if resolved without action needed (creator only)"),

    # in_progress → resolved
    _t(Status.in_progress, Status.resolved, {Role.agent, Role.admin},
       "Mark Resolved", "Mark work as finished, awaiting user approval (reviewer only)"),

    # resolved: автор приймає або відхиляє рішення
    _t(Status.resolved, Status.closed, {Role.user},
       "Approve Resolution", "Accept the resolution and close ticket (creator only)"),
    _t(Status.resolved, Status.reopened, {Role.user},
       "Reject Resolution", "Reject the resolution and reopen ticket (creator only)"),

    _t(Status.reopened, Status.in_progress, {Role.agent, Role.admin},
       "Resume Work", "Resume working on the reopened ticket (reviewer only)"),

    # admin override із closed
    _t(Status.closed, Status.open, {Role.admin},
       "Reopen (Admin)", "Admin override to reopen closed ticket"),
    _t(Status.closed, Status.in_progress, {Role.admin},
       "Resume (Admin)", "Admin override to resume work on closed ticket"),
)

# статуси, в яких у автора є рішення, що чекає на нього
USER_ACTIONABLE: frozenset[Status] = frozenset({Status.open, Status.resolved})


def _ownership(ticket: Any) -> tuple[Any, Any]:
    if isinstance(ticket, Mapping):
        return ticket.get("created_by"), ticket.get("assigned_to")
    return getattr(ticket, "created_by", None), getattr(ticket, "assigned_to", None)


def _passes_refinement(role: Role, status: Status, user_id: Any, created_by: Any, assigned_to: Any) -> bool:
    if role == Role.user:
        return created_by == user_id and status in USER_ACTIONABLE
    if role == Role.agent:
        return assigned_to is None or assigned_to == user_id
    return True


def valid_transitions(current_status: Any, role: Any, user_id: Any, ticket: Any) -> list[StatusTransition]:
    """
    Переходи, доступні користувачу (role, user_id) для заявки в current_status.

    Невідомий статус або роль → порожній список. Порядок: як у таблиці.
    """
    status = coerce_enum(Status, current_status)
    role_ = resolve_role(role)
    if status is None or role_ is None:
        return []

    created_by, assigned_to = _ownership(ticket)
    if not _passes_refinement(role_, status, user_id, created_by, assigned_to):
        return []

    return [
        tr for tr in STATUS_TRANSITIONS
        if tr.from_status == status and role_ in tr.allowed_roles
    ]


def can_transition(src: Any, dst: Any, role: Any, user_id: Any, ticket: Any) -> bool:
    target = coerce_enum(Status, dst)
    if target is None:
        return False
    return any(tr.to_status == target for tr in valid_transitions(src, role, user_id, ticket))


def find_transition(src: Any, dst: Any) -> Optional[StatusTransition]:
    """Рядок таблиці для пари (src, dst), без перевірки прав."""
    s, d = coerce_enum(Status, src), coerce_enum(Status, dst)
    for tr in STATUS_TRANSITIONS:
        if tr.from_status == s and tr.to_status == d:
            return tr
    return None
