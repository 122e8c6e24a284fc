"""
Права за ролями (декларативна таблиця) + предикати доступу до заявки.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from ticketdesk.core.enums import RoleEnum as Role
from ticketdesk.core.enums import coerce_enum


@dataclass(frozen=True)
class RolePermissions:
    can_manage_users: bool = False
    can_manage_all_tickets: bool = False
    can_assign_tickets: bool = False
    can_view_all_tickets: bool = False
    can_delete_tickets: bool = False
    can_manage_settings: bool = False
    can_view_analytics: bool = False
    can_close_tickets: bool = False
    can_edit_any_ticket: bool = False


ROLE_PERMISSIONS: dict[Role, RolePermissions] = {
    Role.admin: RolePermissions(
        can_manage_users=True,
        can_manage_all_tickets=True,
        can_assign_tickets=True,
        can_view_all_tickets=True,
        can_delete_tickets=True,
        can_manage_settings=True,
        can_view_analytics=True,
        can_close_tickets=True,
        can_edit_any_ticket=True,
    ),
    Role.agent: RolePermissions(
        can_manage_users=False,
        can_manage_all_tickets=True,
        can_assign_tickets=True,
        can_view_all_tickets=True,
        can_delete_tickets=True,
        can_manage_settings=False,
        can_view_analytics=True,
        can_close_tickets=False,
        can_edit_any_ticket=True,
    ),
    Role.user: RolePermissions(
        can_manage_users=False,
        can_manage_all_tickets=False,
        can_assign_tickets=False,
        can_view_all_tickets=False,
        can_delete_tickets=False,
        can_manage_settings=False,
        can_view_analytics=False,
        can_close_tickets=True,
        can_edit_any_ticket=False,
    ),
}

NO_PERMISSIONS = RolePermissions()


def resolve_role(value: Any) -> Optional[Role]:
    """
    Єдине місце, де вирішується роль за замовчуванням:
    відсутня роль (None / "") → user; невідома → None.
    """
    if value is None or value == "":
        return Role.user
    return coerce_enum(Role, value)


def permissions_for(role: Any) -> RolePermissions:
    r = resolve_role(role)
    if r is None:
        return NO_PERMISSIONS
    return ROLE_PERMISSIONS[r]


def _field(ticket: Any, name: str) -> Any:
    if isinstance(ticket, Mapping):
        return ticket.get(name)
    return getattr(ticket, name, None)


def can_access_ticket(role: Any, user_id: Any, ticket: Any) -> bool:
    if permissions_for(role).can_view_all_tickets:
        return True
    return _field(ticket, "created_by") == user_id or _field(ticket, "assigned_to") == user_id


def can_edit_ticket(role: Any, user_id: Any, ticket: Any) -> bool:
    """Редагування полів: agent/admin: будь-яку; user: лише свою."""
    r = resolve_role(role)
    if r in {Role.admin, Role.agent}:
        return True
    if r is None:
        return False
    return _field(ticket, "created_by") == user_id
