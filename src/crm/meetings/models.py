"""Meeting persistence model.

Attendee and lead references are stored as JSON arrays of UUID strings and
created_by as a plain UUID column. No foreign key constraints: references
are resolved by the repository at read time and their existence is not
checked on write.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.crm.core.database import Base


class MeetingModel(Base):
    """A meeting logged against contacts and/or leads.

    ``timestamp`` is the creation time stamped by the service; ``deleted``
    is the soft-delete marker and only ever moves from false to true.
    """

    __tablename__ = "meetings"
    __table_args__ = (
        Index("idx_meetings_deleted_timestamp", "deleted", "timestamp"),
        Index("idx_meetings_created_by", "created_by"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    agenda: Mapped[str | None] = mapped_column(Text, nullable=True)
    attendees: Mapped[list] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    attendees_lead: Mapped[list] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    related: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
