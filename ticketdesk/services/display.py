"""
Display registry для статусів, пріоритетів і ролей.

Чисті таблиці відповідності: значення enum → підпис, колірний токен, опис.
На невідомі значення повертаємо окремий запис "Unknown", а не виняток.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from ticketdesk.core.enums import (
    PriorityEnum as Priority,
    RoleEnum as Role,
    TicketStatusEnum as Status,
    coerce_enum,
)


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    color: str
    description: str


@dataclass(frozen=True)
class PriorityDisplay:
    label: str
    color: str
    description: str
    weight: int


STATUS_DISPLAY: dict[Status, StatusDisplay] = {
    Status.open: StatusDisplay("Open", "blue", "Ticket is open and waiting to be picked up"),
    Status.in_progress: StatusDisplay("In Progress", "yellow", "Ticket is being worked on"),
    Status.resolved: StatusDisplay(
        "Resolved", "purple", "Issue has been resolved, waiting for user confirmation"
    ),
    Status.reopened: StatusDisplay("Reopened", "orange", "Ticket was reopened and needs attention"),
    Status.closed: StatusDisplay("Closed", "green", "Ticket is closed and resolved"),
}

UNKNOWN_STATUS = StatusDisplay("Unknown", "gray", "Unknown status")

PRIORITY_DISPLAY: dict[Priority, PriorityDisplay] = {
    Priority.low: PriorityDisplay("Low", "blue", "Can wait, no impact on work", 1),
    Priority.medium: PriorityDisplay("Medium", "yellow", "Normal priority", 2),
    Priority.high: PriorityDisplay("High", "purple", "Blocks part of the work", 3),
    Priority.critical: PriorityDisplay("Critical", "red", "Work is stopped, needs immediate attention", 4),
}

UNKNOWN_PRIORITY = PriorityDisplay("Unknown", "gray", "Unknown priority", 0)

ROLE_DISPLAY: dict[Role, str] = {
    Role.admin: "Administrator",
    Role.agent: "Support Agent",
    Role.user: "User",
}


def status_display(status: Any) -> StatusDisplay:
    key = coerce_enum(Status, status)
    return STATUS_DISPLAY.get(key, UNKNOWN_STATUS)


def priority_display(priority: Any) -> PriorityDisplay:
    key = coerce_enum(Priority, priority)
    return PRIORITY_DISPLAY.get(key, UNKNOWN_PRIORITY)


def role_display(role: Any) -> str:
    return ROLE_DISPLAY.get(coerce_enum(Role, role), "Unknown")


def _created_ts(ticket: Any) -> float:
    v = getattr(ticket, "created_at", None)
    return v.timestamp() if isinstance(v, datetime) else 0.0


def sort_by_priority(tickets: Iterable[Any]) -> list[Any]:
    """Спершу найвищий пріоритет, при рівності: новіші вище."""
    return sorted(
        tickets,
        key=lambda t: (-priority_display(getattr(t, "priority", None)).weight, -_created_ts(t)),
    )
