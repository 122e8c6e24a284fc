# ticketdesk/schemas/reports.py
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

ActivityType = Literal["ticket_created", "status_changed", "comment_added"]


class ActivityOut(BaseModel):
    id: str
    type: ActivityType
    description: str
    details: str
    user: str
    timestamp: datetime
    ticket_id: Optional[int] = None
