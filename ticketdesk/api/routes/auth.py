# ticketdesk/api/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from ticketdesk.api.deps import DBDep, UserDep
from ticketdesk.core.config import settings
from ticketdesk.core.logging import log_extra
from ticketdesk.core.security import verify_password
from ticketdesk.schemas.auth import LoginIn, RegisterIn, TokenOut
from ticketdesk.schemas.users import UserOut
from ticketdesk.services.auth import (
    get_user_by_email,
    make_token_for_user,
    register_user,
    serialize_user,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, request: Request, db: DBDep):
    user = await get_user_by_email(db, payload.username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email is not registered",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )

    if not verify_password(payload.password or "", user.password_hash):
        logger.info("login_failed", extra=log_extra(request, user_id=user.id))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )

    token = make_token_for_user(user, remember_me=bool(payload.remember_me))
    return TokenOut(access_token=token, user=UserOut(**serialize_user(user)))


@router.get("/me", response_model=UserOut)
async def me(current: UserDep):
    return UserOut(**serialize_user(current))


@router.post("/register", response_model=TokenOut, status_code=201)
async def register(payload: RegisterIn, request: Request, db: DBDep):
    if not settings.allow_self_signup:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Self signup is disabled")

    try:
        u = await register_user(db, email=str(payload.email), password=payload.password, full_name=payload.full_name)
    except ValueError:
        # дублікати → 409 Conflict
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        )

    logger.info("user_registered", extra=log_extra(request, user_id=u.id))
    return TokenOut(access_token=make_token_for_user(u), user=UserOut(**serialize_user(u)))
