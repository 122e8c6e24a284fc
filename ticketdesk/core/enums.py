# ticketdesk/core/enums.py
"""
Закриті переліки домену.

Живуть окремо від ORM-моделей, щоб workflow-рушій (services/workflow.py)
не тягнув за собою SQLAlchemy.
"""
from __future__ import annotations

import enum


class RoleEnum(str, enum.Enum):
    user = "user"
    agent = "agent"
    admin = "admin"


class TicketStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    reopened = "reopened"
    closed = "closed"


class PriorityEnum(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class CommentTypeEnum(str, enum.Enum):
    comment = "comment"
    internal = "internal"
    system = "system"  # аудит змін статусу, не редагується


class NotificationTypeEnum(str, enum.Enum):
    ticket_created = "ticket_created"
    status_update = "status_update"
    assignment = "assignment"
    comment = "comment"


def coerce_enum(enum_cls, value):
    """
    Enum-член або рядок → член enum_cls; усе інше → None.
    Для «битих» записів у БД, щоб рендеринг не падав.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return None
