# ticketdesk/services/notifications.py
"""
Нотифікації: in-app записи в таблиці notifications + подія в RQ-черзі
(мейл/webhook робить воркер). Помилки черги не валять HTTP-запит.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import redis
from rq import Queue, Retry
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.config import settings
from ticketdesk.core.enums import NotificationTypeEnum
from ticketdesk.db.models import Notification

log = logging.getLogger(__name__)

_queue: Queue | None = None


def _get_queue() -> Queue:
    global _queue
    if _queue is None:
        _queue = Queue(settings.notifications_queue, connection=redis.from_url(settings.redis_url))
    return _queue


def enqueue(event_type: str, payload: Mapping[str, Any]) -> str | None:
    """
    Кладемо подію в чергу: у воркері викликається handle_event.
    Повертає job.id або None (вимкнено / помилка).
    """
    if not settings.notifications_enabled:
        return None
    try:
        job = _get_queue().enqueue(
            "ticketdesk.workers.rq_worker.handle_event",
            event_type,
            dict(payload),
            job_timeout=60,
            retry=Retry(max=3, interval=[5, 15, 30]),
        )
        return job.id
    except (redis.RedisError, OSError):
        log.exception("enqueue_failed", extra={"event_type": event_type})
        return None


def notify_ticket_event(
    db: AsyncSession,
    *,
    ticket_id: int,
    type_: NotificationTypeEnum,
    actor_id: int,
    actor_name: str | None,
    recipient_ids: Iterable[int | None],
    title: str,
    message: str,
) -> list[Notification]:
    """
    Додає в сесію нотифікації для отримувачів (без commit).
    Актор сам собі не отримує; дублікати та None відкидаються.
    """
    seen: set[int] = set()
    out: list[Notification] = []
    for uid in recipient_ids:
        if uid is None or uid == actor_id or uid in seen:
            continue
        seen.add(uid)
        n = Notification(
            user_id=uid,
            ticket_id=ticket_id,
            type=type_,
            title=title,
            message=message,
            actor_name=actor_name,
            read=False,
        )
        db.add(n)
        out.append(n)
    return out
