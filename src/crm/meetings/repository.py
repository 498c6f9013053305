"""Meeting repository -- async persistence for meetings and their references.

Provides MeetingRepository with the session_factory callable pattern: each
method opens its own session from the factory, so the repository holds no
per-request state. Handles conversion between SQLAlchemy models and the
Pydantic schemas in src.crm.meetings.schemas.

Reference lookups (contacts, leads, users) are batched: one SELECT per
reference type with ``id IN (...)``, returning dicts keyed by id string for
the read-model builder.

Ids arriving here have already been checked by MeetingService; SQLAlchemy
errors propagate to the caller unchanged.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable, Iterable
from datetime import datetime

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm.meetings.models import MeetingModel
from src.crm.meetings.schemas import (
    ContactSummary,
    LeadSummary,
    Meeting,
    MeetingCreate,
    MeetingFilter,
    SoftDeleteResult,
    UserSummary,
)
from src.crm.models.people import ContactModel, LeadModel, UserModel

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_meeting(model: MeetingModel) -> Meeting:
    """Convert MeetingModel to Meeting schema."""
    return Meeting(
        id=str(model.id),
        agenda=model.agenda,
        attendees=[str(a) for a in (model.attendees or [])],
        attendees_lead=[str(a) for a in (model.attendees_lead or [])],
        location=model.location,
        related=model.related,
        date_time=model.date_time,
        notes=model.notes,
        created_by=str(model.created_by) if model.created_by else None,
        timestamp=model.timestamp,
        deleted=bool(model.deleted),
    )


def _model_to_contact(model: ContactModel) -> ContactSummary:
    return ContactSummary(
        id=str(model.id),
        first_name=model.first_name,
        last_name=model.last_name,
        email=model.email,
        phone_number=model.phone_number,
        title=model.title,
        deleted=bool(model.deleted),
    )


def _model_to_lead(model: LeadModel) -> LeadSummary:
    return LeadSummary(
        id=str(model.id),
        lead_name=model.lead_name,
        lead_email=model.lead_email,
        lead_phone_number=model.lead_phone_number,
        lead_status=model.lead_status,
        deleted=bool(model.deleted),
    )


def _model_to_user(model: UserModel) -> UserSummary:
    return UserSummary(
        id=str(model.id),
        username=model.username,
        deleted=bool(model.deleted),
    )


def _to_uuids(ids: Iterable[str]) -> list[uuid.UUID]:
    return [uuid.UUID(i) for i in ids]


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async CRUD operations for meetings and reference lookups.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    # ── Meetings ─────────────────────────────────────────────────────────

    async def create_meeting(
        self, data: MeetingCreate, timestamp: datetime
    ) -> Meeting:
        """Persist a new meeting.

        Args:
            data: Validated MeetingCreate payload.
            timestamp: Server-side creation time.

        Returns:
            Meeting with all persisted fields, including the generated id.
        """
        async for session in self._session_factory():
            model = MeetingModel(
                agenda=data.agenda,
                attendees=list(data.attendees),
                attendees_lead=list(data.attendees_lead),
                location=data.location,
                related=data.related,
                date_time=data.date_time,
                notes=data.notes,
                created_by=uuid.UUID(data.created_by) if data.created_by else None,
                timestamp=timestamp,
                deleted=False,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("meeting.created", meeting_id=str(model.id))
            return _model_to_meeting(model)

    async def get_meeting(self, meeting_id: str) -> Meeting | None:
        """Get a meeting by ID regardless of its deleted flag.

        Returns:
            Meeting if found, None otherwise.
        """
        async for session in self._session_factory():
            stmt = select(MeetingModel).where(
                MeetingModel.id == uuid.UUID(meeting_id)
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_meeting(model)

    async def list_meetings(
        self, filters: MeetingFilter | None = None
    ) -> list[Meeting]:
        """List non-deleted meetings matching filters, newest first.

        Args:
            filters: Optional exact-match filters; created_by must be a
                valid UUID string.

        Returns:
            List of Meeting schemas.
        """
        async for session in self._session_factory():
            stmt = select(MeetingModel).where(
                MeetingModel.deleted == False,  # noqa: E712
            )
            if filters:
                if filters.agenda is not None:
                    stmt = stmt.where(MeetingModel.agenda == filters.agenda)
                if filters.location is not None:
                    stmt = stmt.where(MeetingModel.location == filters.location)
                if filters.related is not None:
                    stmt = stmt.where(MeetingModel.related == filters.related)
                if filters.date_time is not None:
                    stmt = stmt.where(MeetingModel.date_time == filters.date_time)
                if filters.notes is not None:
                    stmt = stmt.where(MeetingModel.notes == filters.notes)
                if filters.created_by is not None:
                    stmt = stmt.where(
                        MeetingModel.created_by == uuid.UUID(filters.created_by)
                    )
            stmt = stmt.order_by(MeetingModel.timestamp.desc())
            result = await session.execute(stmt)
            return [_model_to_meeting(m) for m in result.scalars().all()]

    async def soft_delete(self, meeting_id: str) -> SoftDeleteResult:
        """Set deleted=True on one meeting."""
        return await self.soft_delete_many([meeting_id])

    async def soft_delete_many(self, meeting_ids: list[str]) -> SoftDeleteResult:
        """Set deleted=True on every meeting in meeting_ids with one UPDATE.

        matched_count is the number of ids that exist; modified_count is the
        number whose flag changed from False to True.
        """
        ids = _to_uuids(meeting_ids)
        async for session in self._session_factory():
            count_stmt = select(func.count()).select_from(MeetingModel).where(
                MeetingModel.id.in_(ids)
            )
            matched = (await session.execute(count_stmt)).scalar_one()

            update_stmt = (
                update(MeetingModel)
                .where(
                    MeetingModel.id.in_(ids),
                    MeetingModel.deleted == False,  # noqa: E712
                )
                .values(deleted=True)
            )
            result = await session.execute(update_stmt)
            await session.commit()

            logger.info(
                "meeting.soft_deleted",
                requested=len(ids),
                matched=matched,
                modified=result.rowcount,
            )
            return SoftDeleteResult(
                matched_count=matched,
                modified_count=result.rowcount,
            )

    # ── Reference Lookups ────────────────────────────────────────────────

    async def get_contacts(self, contact_ids: Iterable[str]) -> dict[str, ContactSummary]:
        """Resolve contact ids to records, keyed by id string."""
        ids = _to_uuids(contact_ids)
        if not ids:
            return {}
        async for session in self._session_factory():
            result = await session.execute(
                select(ContactModel).where(ContactModel.id.in_(ids))
            )
            return {
                str(m.id): _model_to_contact(m) for m in result.scalars().all()
            }

    async def get_leads(self, lead_ids: Iterable[str]) -> dict[str, LeadSummary]:
        """Resolve lead ids to records, keyed by id string."""
        ids = _to_uuids(lead_ids)
        if not ids:
            return {}
        async for session in self._session_factory():
            result = await session.execute(
                select(LeadModel).where(LeadModel.id.in_(ids))
            )
            return {str(m.id): _model_to_lead(m) for m in result.scalars().all()}

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, UserSummary]:
        """Resolve user ids to records, keyed by id string."""
        ids = _to_uuids(user_ids)
        if not ids:
            return {}
        async for session in self._session_factory():
            result = await session.execute(
                select(UserModel).where(UserModel.id.in_(ids))
            )
            return {str(m.id): _model_to_user(m) for m in result.scalars().all()}
