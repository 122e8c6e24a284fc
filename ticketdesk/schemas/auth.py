# ticketdesk/schemas/auth.py
from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field

from ticketdesk.schemas.users import UserOut


class LoginIn(BaseModel):
    username: EmailStr
    password: str
    remember_me: bool | None = None


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str | None = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
