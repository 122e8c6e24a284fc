from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticketdesk.core.enums import CommentTypeEnum


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10_000)
    is_internal: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentUpdate(CommentCreate):
    pass


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    user_id: int
    content: str
    comment_type: CommentTypeEnum
    is_internal: bool
    created_at: datetime
