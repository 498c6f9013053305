"""Pydantic v2 schemas for the meeting domain.

Defines the write payload (MeetingCreate), the stored record (Meeting), list
filters, the resolved reference records (contacts, leads, users), and the
two read models:
- EnrichedMeeting: list row; keeps raw id lists and adds *_details arrays
- MeetingDetail: single view; attendee id lists replaced by resolved records
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ── Reference Records ────────────────────────────────────────────────────────


class ContactSummary(BaseModel):
    """Contact record as resolved from a meeting's attendees."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    title: str | None = None
    deleted: bool = False


class LeadSummary(BaseModel):
    """Lead record as resolved from a meeting's attendees_lead."""

    id: str
    lead_name: str | None = None
    lead_email: str | None = None
    lead_phone_number: str | None = None
    lead_status: str | None = None
    deleted: bool = False


class UserSummary(BaseModel):
    """Creator record; only used to derive created_by_name, never returned."""

    id: str
    username: str
    deleted: bool = False


# ── Meeting ──────────────────────────────────────────────────────────────────


class MeetingCreate(BaseModel):
    """Fields accepted when creating a meeting.

    Reference ids are left unchecked here; MeetingService checks each one
    so the error can name the offending field. A null id list means no
    attendees.
    """

    agenda: str | None = None
    attendees: list[Any] | None = None
    attendees_lead: list[Any] | None = None
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: Any = None


class Meeting(BaseModel):
    """A stored meeting record."""

    id: str
    agenda: str | None = None
    attendees: list[str] = Field(default_factory=list)
    attendees_lead: list[str] = Field(default_factory=list)
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: str | None = None
    timestamp: datetime
    deleted: bool = False


class MeetingFilter(BaseModel):
    """Exact-match list filters. Soft-deleted meetings are always excluded."""

    agenda: str | None = None
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: str | None = None


# ── Read Models ──────────────────────────────────────────────────────────────


class EnrichedMeeting(Meeting):
    """List row: the stored meeting plus resolved references."""

    attendees_details: list[ContactSummary] = Field(default_factory=list)
    attendees_lead_details: list[LeadSummary] = Field(default_factory=list)
    created_by_name: str | None = None


class MeetingDetail(BaseModel):
    """Single-meeting view with attendee ids replaced by their records."""

    id: str
    agenda: str | None = None
    attendees: list[ContactSummary] = Field(default_factory=list)
    attendees_lead: list[LeadSummary] = Field(default_factory=list)
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: str | None = None
    created_by_name: str | None = None
    timestamp: datetime
    deleted: bool = False


# ── Soft Delete ──────────────────────────────────────────────────────────────


class SoftDeleteResult(BaseModel):
    """Row counts reported by a soft-delete update.

    matched_count counts targeted rows that exist; modified_count counts
    rows whose deleted flag actually changed.
    """

    matched_count: int = 0
    modified_count: int = 0
