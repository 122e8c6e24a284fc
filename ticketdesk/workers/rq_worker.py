# ticketdesk/workers/rq_worker.py
import os
import logging
import json
import hmac, hashlib
from typing import Any, Callable, Mapping

import redis
import requests
from rq import Queue, Worker

from ticketdesk.core.config import settings
from ticketdesk.core.logging import setup_logging

logger = logging.getLogger("worker.notifications")


def _sign(payload: Mapping[str, Any]) -> str | None:
    if not settings.webhook_secret:
        return None
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return hmac.new(settings.webhook_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _post(event_type: str, payload: Mapping[str, Any]) -> None:
    url = settings.webhook_url
    if not url:
        logger.debug("webhook_url_missing", extra={"event_type": event_type})
        return
    headers = {"Content-Type": "application/json", "X-TicketDesk-Event": event_type}
    sig = _sign(payload)
    if sig:
        headers["X-TicketDesk-Signature"] = f"sha256={sig}"
    # помилка → виняток → RQ Retry
    r = requests.post(url, json=payload, headers=headers, timeout=10)
    r.raise_for_status()
    logger.info("webhook_sent", extra={"event_type": event_type, "status": r.status_code})


def send_mail_mock(to: str, subject: str, body: str) -> None:
    logger.info("SEND_MAIL", extra={"to": to, "subject": subject, "body_len": len(body)})


def on_ticket_created(payload: Mapping[str, Any]) -> None:
    ticket = payload.get("ticket", {})
    author = payload.get("author")
    logger.info("ticket_created", extra={"ticket_id": ticket.get("id"), "author": author})
    if author:
        send_mail_mock(author, f"Ticket #{ticket.get('id')} created", "Your request was registered.")
    _post("ticket.created", payload)


def on_status_changed(payload: Mapping[str, Any]) -> None:
    ticket = payload.get("ticket", {})
    logger.info(
        "status_changed",
        extra={"ticket_id": ticket.get("id"), "from_status": payload.get("from"), "to_status": payload.get("to")},
    )
    _post("ticket.status_changed", payload)


def on_ticket_assigned(payload: Mapping[str, Any]) -> None:
    ticket = payload.get("ticket", {})
    assignee = payload.get("assignee")
    if assignee:
        send_mail_mock(assignee, f"Ticket #{ticket.get('id')} assigned to you", ticket.get("title") or "")
    _post("ticket.assigned", payload)


def on_comment_added(payload: Mapping[str, Any]) -> None:
    logger.info("comment_added", extra={"ticket_id": payload.get("ticket_id"), "comment_id": payload.get("comment_id")})
    if not payload.get("is_internal"):
        _post("ticket.comment_added", payload)


EVENT_HANDLERS: dict[str, Callable[[Mapping[str, Any]], None]] = {
    "ticket_created": on_ticket_created,
    "status_changed": on_status_changed,
    "ticket_assigned": on_ticket_assigned,
    "comment_added": on_comment_added,
}


def handle_event(event_type: str, payload: Mapping[str, Any] | None = None) -> None:
    handler = EVENT_HANDLERS.get(event_type)
    if not handler:
        logger.warning("unknown_event", extra={"event_type": event_type})
        return
    handler(payload or {})


def main() -> None:
    setup_logging(settings.log_level)
    logger.info("worker_starting", extra={"queue": settings.notifications_queue})
    conn = redis.from_url(settings.redis_url)
    queue = Queue(settings.notifications_queue, connection=conn)
    worker = Worker([queue], connection=conn, name=os.getenv("WORKER_NAME", "notifications-worker"))
    worker.work(logging_level=settings.log_level)


if __name__ == "__main__":
    main()
