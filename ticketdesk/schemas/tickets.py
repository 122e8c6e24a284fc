# ticketdesk/schemas/tickets.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticketdesk.core.enums import PriorityEnum as Priority
from ticketdesk.core.enums import TicketStatusEnum as Status
from ticketdesk.schemas.users import UserBrief


class TicketBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10)
    priority: Priority = Field(default=Priority.medium)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TicketCreate(TicketBase):
    assigned_to: Optional[int] = None


class TicketUpdate(BaseModel):
    # усі поля опційні; статус тут не міняється: тільки через /transition
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, min_length=10)
    priority: Optional[Priority] = None
    assigned_to: Optional[int] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class DisplayOut(BaseModel):
    label: str
    color: str
    description: str


class PriorityDisplayOut(DisplayOut):
    weight: int


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    priority: Priority
    status: Status
    created_by: int
    assigned_to: Optional[int] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    # relationships; роутери вантажать їх через selectinload
    creator: UserBrief
    assignee: Optional[UserBrief] = None


class TicketDetailOut(TicketOut):
    status_info: DisplayOut
    priority_info: PriorityDisplayOut


class TicketsPage(BaseModel):
    items: list[TicketOut]
    total: int
    limit: int
    offset: int


class TicketStats(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    reopened: int = 0
    closed: int = 0


class TransitionOut(BaseModel):
    from_status: Status
    to_status: Status
    label: str
    description: str


class TransitionIn(BaseModel):
    to_status: Status
