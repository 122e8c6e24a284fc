# ticketdesk/main.py
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ticketdesk.api.routes import (
    admin,
    auth,
    comments,
    health,
    notifications,
    reports,
    tickets,
    users,
)
from ticketdesk.core.config import settings
from ticketdesk.core.logging import RequestIdMiddleware, setup_logging

# (router, prefix, tag); усе API під /api
ROUTERS = [
    (health.router, "/api", "health"),
    (auth.router, "/api/auth", "auth"),
    (users.router, "/api/users", "users"),
    (tickets.router, "/api/tickets", "tickets"),
    (comments.router, "/api/tickets", "comments"),
    (notifications.router, "/api/notifications", "notifications"),
    (reports.router, "/api/reports", "reports"),
    (admin.router, "/api/admin", "admin"),
]

BASE_DIR = Path(__file__).resolve().parents[1]


def _ui_dist() -> Path:
    return Path(settings.ui_dist_dir or os.getenv("UI_DIST_DIR") or (BASE_DIR / "front" / "dist"))


def _mount_ui(app: FastAPI, ui_dist: Path) -> None:
    """SPA-збірка на /, якщо вона є; інакше простий статус на /."""
    if not ui_dist.exists():
        @app.get("/", include_in_schema=False)
        def root():
            return {"status": "ok", "ui": "not built", "build_at": str(ui_dist)}
        return

    app.mount("/", StaticFiles(directory=str(ui_dist), html=True), name="ui")


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    app = FastAPI(
        title="TicketDesk",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    _mount_ui(app, _ui_dist())
    return app


app = create_app()
