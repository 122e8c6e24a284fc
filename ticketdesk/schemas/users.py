# ticketdesk/schemas/users.py
from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict

from ticketdesk.core.enums import RoleEnum


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    role: str
    role_label: str | None = None
    name: str | None = None
    is_active: bool | None = None


class UserBrief(BaseModel):
    """Профіль автора/виконавця всередині заявки."""
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str | None = None
    email: str
    role: RoleEnum


class UserUpdateSelf(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    password: str | None = Field(default=None, min_length=6, max_length=128)


class UserAdminUpdate(BaseModel):
    role: RoleEnum | None = None
    is_active: bool | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)


class UsersPage(BaseModel):
    items: list[UserOut]
    total: int
    page: int
    limit: int


class PermissionsOut(BaseModel):
    role: str
    can_manage_users: bool
    can_manage_all_tickets: bool
    can_assign_tickets: bool
    can_view_all_tickets: bool
    can_delete_tickets: bool
    can_manage_settings: bool
    can_view_analytics: bool
    can_close_tickets: bool
    can_edit_any_ticket: bool
