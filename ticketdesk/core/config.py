# ticketdesk/core/config.py
import json
from typing import List, Optional, Union

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# async-драйвер застосунку → sync-драйвер для alembic
SYNC_DRIVERS = {
    "postgresql+asyncpg://": "postgresql+psycopg2://",
    "sqlite+aiosqlite://": "sqlite://",
}

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Налаштування з оточення / .env (регістр імен не важливий)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    # ==== Інфраструктура ====
    database_url: str = "postgresql+asyncpg://app:app@db:5432/ticketdesk"
    redis_url: str = "redis://redis:6379/0"

    # ==== Auth (JWT) ====
    jwt_secret: str = "changeme"
    jwt_alg: str = "HS256"
    jwt_expires_min: int = 60
    jwt_remember_expires_min: int = 60 * 24 * 30  # "Запам’ятати мене"

    # CORS_ORIGINS=http://localhost:5173,http://127.0.0.1:5173 або JSON-список
    cors_origins: Union[str, List[str]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    allow_self_signup: bool = True

    # ==== Bootstrap (scripts/bootstrap_admin.py) ====
    admin_email: str = "admin@example.com"
    admin_password: str = "ChangeMe123!"
    admin_name: str = "Admin"
    create_demo_agent: bool = True
    create_demo_user: bool = True

    # ==== Нотифікації (RQ + webhook) ====
    notifications_enabled: bool = True
    notifications_queue: str = "notifications"
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None

    ui_dist_dir: Optional[str] = None

    env: str = "dev"          # dev|staging|prod
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if not isinstance(v, str):
            return v
        s = v.strip()
        if s.startswith("["):
            try:
                return [str(i).strip() for i in json.loads(s) if str(i).strip()]
            except ValueError:
                pass
        return [i.strip() for i in s.split(",") if i.strip()]

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _check_prod_secret(self):
        if self.env == "prod" and self.jwt_secret == "changeme":
            raise ValueError("JWT_SECRET must be set in prod")
        return self

    @property
    def sync_database_url(self) -> str:
        """URL для alembic/скриптів, яким потрібен синхронний драйвер."""
        for async_prefix, sync_prefix in SYNC_DRIVERS.items():
            if self.database_url.startswith(async_prefix):
                return sync_prefix + self.database_url[len(async_prefix):]
        return self.database_url


settings = Settings()
