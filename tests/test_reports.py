"""
Tests for ticket reports (analytics endpoint and aggregation service).
Run: pytest tests/test_reports.py -v
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from ticketdesk.db.models import Priority, Status, Ticket
from ticketdesk.services.reports import latest_report


class TestReportEndpoint:
    def test_user_forbidden(self, client, auth):
        assert client.get("/api/reports/latest", headers=auth("user")).status_code == 403

    def test_empty(self, client, auth):
        data = client.get("/api/reports/latest", headers=auth("agent")).json()
        assert data["by_status"] == {"open": 0, "in_progress": 0, "resolved": 0, "reopened": 0, "closed": 0}
        assert data["by_priority"] == {"low": 0, "medium": 0, "high": 0, "critical": 0}
        assert data["closed_last_24h"] == 0
        assert data["avg_resolution_minutes"] is None

    def test_counts_after_workflow(self, client, auth, make_ticket, transition):
        a = make_ticket("user", priority="high")
        make_ticket("other", priority="low")
        transition("agent", a["id"], "in_progress")
        transition("agent", a["id"], "resolved")
        transition("user", a["id"], "closed")

        data = client.get("/api/reports/latest", headers=auth("admin")).json()
        assert data["by_status"]["closed"] == 1
        assert data["by_status"]["open"] == 1
        assert data["by_priority"]["high"] == 1
        assert data["by_priority"]["low"] == 1
        assert data["closed_last_24h"] == 1
        assert data["avg_resolution_minutes"] is not None

    def test_close_counts_when_resolved_long_ago(self, client, auth, make_ticket, transition, db):
        t = make_ticket("user")
        transition("agent", t["id"], "in_progress")
        transition("agent", t["id"], "resolved")
        db.execute(
            update(Ticket)
            .where(Ticket.id == t["id"])
            .values(resolved_at=datetime.now(timezone.utc) - timedelta(days=2))
        )
        db.commit()

        assert transition("user", t["id"], "closed").status_code == 200

        data = client.get("/api/reports/latest", headers=auth("admin")).json()
        assert data["by_status"]["closed"] == 1
        assert data["closed_last_24h"] == 1

    def test_reopened_by_admin_not_counted(self, client, auth, make_ticket, transition):
        t = make_ticket("user")
        transition("user", t["id"], "closed")
        transition("admin", t["id"], "open")

        data = client.get("/api/reports/latest", headers=auth("admin")).json()
        assert data["closed_last_24h"] == 0


class TestLatestReport:
    def test_resolution_time_and_window(self, sync_engine, users, db):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        uid = users["user"].id
        db.add_all([
            Ticket(title="old", description="closed long ago", priority=Priority.low, status=Status.closed,
                   created_by=uid, created_at=now - timedelta(days=3), resolved_at=now - timedelta(days=2),
                   closed_at=now - timedelta(days=2)),
            Ticket(title="fresh", description="closed an hour ago", priority=Priority.high, status=Status.closed,
                   created_by=uid, created_at=now - timedelta(hours=3), resolved_at=now - timedelta(hours=1),
                   closed_at=now - timedelta(hours=1)),
            # вирішено давно, автор підтвердив щойно
            Ticket(title="approved", description="resolved days ago, closed now", priority=Priority.low,
                   status=Status.closed, created_by=uid, created_at=now - timedelta(days=5),
                   resolved_at=now - timedelta(days=4), closed_at=now - timedelta(minutes=30)),
            Ticket(title="waiting", description="resolved, not approved", priority=Priority.high,
                   status=Status.resolved, created_by=uid,
                   created_at=now - timedelta(hours=2), resolved_at=now - timedelta(hours=1, minutes=30)),
        ])
        db.commit()

        engine = create_async_engine(
            str(sync_engine.url).replace("sqlite://", "sqlite+aiosqlite://", 1), poolclass=NullPool
        )

        async def run():
            async with AsyncSession(engine) as s:
                return await latest_report(s, now=now)

        report = asyncio.run(run())

        assert report["closed_last_24h"] == 2
        # (1440 + 120 + 1440 + 30) / 4
        assert report["avg_resolution_minutes"] == 757.5
        assert report["by_status"]["resolved"] == 1
        assert report["by_priority"]["high"] == 2
        assert report["generated_at"] == now.isoformat()


class TestRecentActivity:
    def test_user_forbidden(self, client, auth):
        assert client.get("/api/reports/activity", headers=auth("user")).status_code == 403

    def test_empty(self, client, auth):
        assert client.get("/api/reports/activity", headers=auth("agent")).json() == []

    def test_feed(self, client, auth, make_ticket, transition):
        t = make_ticket("user", title="VPN is down")
        client.post(f"/api/tickets/{t['id']}/comments", json={"content": "x" * 80}, headers=auth("agent"))
        client.post(
            f"/api/tickets/{t['id']}/comments",
            json={"content": "secret note", "is_internal": True},
            headers=auth("agent"),
        )
        transition("agent", t["id"], "in_progress")

        items = client.get("/api/reports/activity", headers=auth("admin")).json()
        by_type = {a["type"]: a for a in items}
        assert len(items) == 3
        assert set(by_type) == {"ticket_created", "comment_added", "status_changed"}

        created = by_type["ticket_created"]
        assert created["description"] == 'New ticket created: "VPN is down"'
        assert created["details"] == "Priority: medium, Status: open"
        assert created["user"] == "User One"
        assert created["ticket_id"] == t["id"]

        comment = by_type["comment_added"]
        assert comment["details"] == "x" * 50 + "..."
        assert comment["user"] == "Agent One"

        status = by_type["status_changed"]
        assert status["details"] == "Ticket status changed to in_progress"
        assert all("secret" not in a["details"] for a in items)

        timestamps = [a["timestamp"] for a in items]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_limit(self, client, auth, make_ticket):
        for _ in range(4):
            make_ticket("user")
        items = client.get("/api/reports/activity", params={"limit": 2}, headers=auth("admin")).json()
        assert len(items) == 2
        assert client.get("/api/reports/activity", params={"limit": 0}, headers=auth("admin")).status_code == 422
