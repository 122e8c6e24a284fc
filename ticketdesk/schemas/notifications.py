from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from ticketdesk.core.enums import NotificationTypeEnum


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: Optional[int] = None
    type: NotificationTypeEnum
    title: str
    message: str
    actor_name: Optional[str] = None
    read: bool
    created_at: datetime


class UnreadCountOut(BaseModel):
    count: int
