"""Initial CRM tables: users, contacts, leads, meetings.

Revision ID: 001_initial_crm
Revises:
Create Date: 2026-10-19

Meetings reference contacts, leads, and users by id only (JSON arrays for
attendees / attendees_lead, a UUID column for created_by). No foreign key
constraints: references are resolved at read time and may dangle.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial_crm"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ── users ────────────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(200), nullable=True),
        sa.Column("last_name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(50), server_default=sa.text("'user'"), nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    # ── contacts ─────────────────────────────────────────────────────────

    op.create_table(
        "contacts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("first_name", sa.String(200), nullable=True),
        sa.Column("last_name", sa.String(200), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── leads ────────────────────────────────────────────────────────────

    op.create_table(
        "leads",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("lead_name", sa.String(300), nullable=True),
        sa.Column("lead_email", sa.String(255), nullable=True),
        sa.Column("lead_phone_number", sa.String(50), nullable=True),
        sa.Column("lead_status", sa.String(50), nullable=True),
        sa.Column("deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── meetings ─────────────────────────────────────────────────────────

    op.create_table(
        "meetings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("agenda", sa.Text(), nullable=True),
        sa.Column("attendees", sa.JSON(), server_default=sa.text("'[]'::json"), nullable=False),
        sa.Column("attendees_lead", sa.JSON(), server_default=sa.text("'[]'::json"), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("related", sa.String(200), nullable=True),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    )

    # List queries: non-deleted meetings, newest first
    op.create_index("idx_meetings_deleted_timestamp", "meetings", ["deleted", "timestamp"])
    # Filter by creator
    op.create_index("idx_meetings_created_by", "meetings", ["created_by"])


def downgrade() -> None:
    op.drop_index("idx_meetings_created_by", table_name="meetings")
    op.drop_index("idx_meetings_deleted_timestamp", table_name="meetings")
    op.drop_table("meetings")
    op.drop_table("leads")
    op.drop_table("contacts")
    op.drop_table("users")
