# ticketdesk/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

ALGORITHM = "HS256"
_pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenPayload(BaseModel):
    """Вміст access-токена; sub = email користувача."""
    sub: str
    role: str
    type: Literal["access"]
    iat: int
    exp: int


def hash_password(password: str) -> str:
    return _pwd_ctx.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return _pwd_ctx.verify(plain_password, password_hash)


def create_access_token(
    *, subject: str, role: str, secret: str, expires_minutes: int = 60, algorithm: str = ALGORITHM
) -> str:
    now = datetime.now(timezone.utc)
    payload = TokenPayload(
        sub=subject,
        role=role,
        type="access",
        iat=int(now.timestamp()),
        exp=int((now + timedelta(minutes=expires_minutes)).timestamp()),
    )
    return jwt.encode(payload.model_dump(), secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = ALGORITHM) -> TokenPayload:
    """Перевіряє підпис і строк дії. Будь-яка проблема → ValueError."""
    try:
        return TokenPayload.model_validate(jwt.decode(token, secret, algorithms=[algorithm]))
    except JWTError as e:
        raise ValueError("invalid_token") from e
    except ValidationError as e:
        raise ValueError("invalid_token_payload") from e
