# ticketdesk/core/logging.py
import json
import logging
import logging.config
import uuid
from typing import Any, Mapping

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# атрибути, які LogRecord має завжди; решта прийшла через extra=
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ExtraFormatter(logging.Formatter):
    """
    Plain-формат + поля з extra= у вигляді key=value:
    2026-01-01 ... INFO ticketdesk.api.routes.tickets status_changed ticket_id=7 to_status=closed
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra = {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}
        if not extra:
            return line
        pairs = " ".join(f"{k}={json.dumps(v, default=str, ensure_ascii=False)}" for k, v in sorted(extra.items()))
        return f"{line} {pairs}"


def setup_logging(level: str = "INFO") -> None:
    """Єдина конфігурація логів для апки, воркера та Uvicorn."""
    handler = {"handlers": ["default"], "level": level, "propagate": False}
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"()": ExtraFormatter, "fmt": LOG_FORMAT},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "plain"},
        },
        "loggers": {
            "": {"handlers": ["default"], "level": level},
            "uvicorn": dict(handler),
            "uvicorn.error": dict(handler),
            "uvicorn.access": dict(handler),
            "rq.worker": dict(handler),
        },
    })


class RequestIdMiddleware(BaseHTTPMiddleware):
    """X-Request-ID: з вхідного заголовка або новий uuid4; повертається у відповіді."""

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


def log_extra(request: Request, **fields: Any) -> Mapping[str, Any]:
    """
    extra= для логів у роутерах, з request_id поточного запиту:
    logger.info("status_changed", extra=log_extra(request, ticket_id=t.id))
    """
    extra = dict(fields)
    rid = getattr(request.state, "request_id", None)
    if rid:
        extra["request_id"] = rid
    return extra
