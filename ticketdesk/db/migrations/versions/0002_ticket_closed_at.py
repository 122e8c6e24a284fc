"""tickets.closed_at: момент закриття заявки

Revision ID: 0002_ticket_closed_at
Revises: 0001_init
Create Date: 2026-10-17 14:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "0002_ticket_closed_at"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("tickets", sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True))
    # для вже закритих беремо updated_at
    op.execute("UPDATE tickets SET closed_at = updated_at WHERE status = 'closed'")


def downgrade() -> None:
    op.drop_column("tickets", "closed_at")
