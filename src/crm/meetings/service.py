"""MeetingService -- the meeting operations exposed over HTTP.

Stateless: every call validates identifiers, issues repository calls, and
returns a schema or raises one of the typed errors below. Store faults
(SQLAlchemyError) are logged and re-raised as MeetingPersistenceError; there
are no retries.

Operations:
- create: validate reference ids, stamp timestamp, persist
- list: non-deleted meetings with resolved references, creator must be live
- get_one: existence check, then resolved references (no deletion filters)
- soft_delete / soft_delete_many: flip the deleted flag
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from src.crm.core.identifiers import to_reference_id
from src.crm.core.monitoring import meeting_operations_total
from src.crm.meetings.read_model import (
    build_detail_view,
    build_list_view,
    collect_reference_ids,
)
from src.crm.meetings.repository import MeetingRepository
from src.crm.meetings.schemas import (
    EnrichedMeeting,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFilter,
    SoftDeleteResult,
)

logger = structlog.get_logger(__name__)


# ── Errors ──────────────────────────────────────────────────────────────────


class MeetingValidationError(ValueError):
    """A reference identifier in the request is malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class MeetingNotFoundError(LookupError):
    """The targeted meeting(s) do not exist or nothing was changed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MeetingPersistenceError(Exception):
    """The store raised while serving the request."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.message = message


# ── Helpers ─────────────────────────────────────────────────────────────────


def _normalize_ids(field: str, values: Sequence[Any]) -> list[str]:
    """Check every id in values and return their canonical string forms."""
    normalized = []
    for value in values:
        try:
            normalized.append(str(to_reference_id(value)))
        except ValueError:
            raise MeetingValidationError(field, f"Invalid {field} value") from None
    return normalized


def _normalize_id(field: str, value: Any) -> str:
    return _normalize_ids(field, [value])[0]


# ── Service ─────────────────────────────────────────────────────────────────


class MeetingService:
    """Meeting operations over a MeetingRepository.

    Args:
        repository: MeetingRepository (or a compatible test double).
    """

    def __init__(self, repository: MeetingRepository) -> None:
        self._repository = repository

    def _fail(self, operation: str, exc: SQLAlchemyError) -> MeetingPersistenceError:
        logger.error(f"meeting.{operation}_failed", error=str(exc), exc_info=True)
        meeting_operations_total.labels(operation=operation, outcome="error").inc()
        return MeetingPersistenceError(operation, str(exc))

    async def create(self, data: MeetingCreate) -> Meeting:
        """Validate reference ids and persist a new meeting.

        The whole payload is rejected on the first malformed id; nothing is
        written in that case. Null attendee lists are stored as empty.

        Raises:
            MeetingValidationError: An attendee, lead, or creator id is malformed.
            MeetingPersistenceError: The insert failed.
        """
        try:
            payload = data.model_copy(
                update={
                    "attendees": _normalize_ids("attendees", data.attendees or []),
                    "attendees_lead": _normalize_ids(
                        "attendees_lead", data.attendees_lead or []
                    ),
                    "created_by": (
                        _normalize_id("created_by", data.created_by)
                        if data.created_by is not None
                        else None
                    ),
                }
            )
        except MeetingValidationError as exc:
            logger.warning("meeting.create_rejected", field=exc.field)
            meeting_operations_total.labels(operation="create", outcome="invalid").inc()
            raise

        try:
            meeting = await self._repository.create_meeting(
                payload, timestamp=datetime.now(timezone.utc)
            )
        except SQLAlchemyError as exc:
            raise self._fail("create", exc) from exc

        meeting_operations_total.labels(operation="create", outcome="success").inc()
        return meeting

    async def list(self, filters: MeetingFilter | None = None) -> list[EnrichedMeeting]:
        """List non-deleted meetings with resolved contacts, leads, and creator.

        Meetings whose creator is soft-deleted (or does not resolve) are
        left out.

        Raises:
            MeetingValidationError: The created_by filter is malformed.
            MeetingPersistenceError: A query failed.
        """
        if filters and filters.created_by is not None:
            filters = filters.model_copy(
                update={"created_by": _normalize_id("created_by", filters.created_by)}
            )

        try:
            meetings = await self._repository.list_meetings(filters)
            contact_ids, lead_ids, user_ids = collect_reference_ids(meetings)
            contacts = await self._repository.get_contacts(contact_ids)
            leads = await self._repository.get_leads(lead_ids)
            users = await self._repository.get_users(user_ids)
        except SQLAlchemyError as exc:
            raise self._fail("list", exc) from exc

        rows = build_list_view(meetings, contacts, leads, users)
        meeting_operations_total.labels(operation="list", outcome="success").inc()
        return rows

    async def get_one(self, meeting_id: str) -> MeetingDetail:
        """Return a single meeting with attendee ids replaced by records.

        Raises:
            MeetingValidationError: meeting_id is malformed.
            MeetingNotFoundError: No meeting has this id.
            MeetingPersistenceError: A query failed.
        """
        meeting_id = _normalize_id("id", meeting_id)

        try:
            meeting = await self._repository.get_meeting(meeting_id)
        except SQLAlchemyError as exc:
            raise self._fail("get", exc) from exc

        if meeting is None:
            meeting_operations_total.labels(operation="get", outcome="not_found").inc()
            raise MeetingNotFoundError("No data found.")

        try:
            contacts = await self._repository.get_contacts(meeting.attendees)
            leads = await self._repository.get_leads(meeting.attendees_lead)
            users = await self._repository.get_users(
                [meeting.created_by] if meeting.created_by else []
            )
        except SQLAlchemyError as exc:
            raise self._fail("get", exc) from exc

        meeting_operations_total.labels(operation="get", outcome="success").inc()
        return build_detail_view(meeting, contacts, leads, users)

    async def soft_delete(self, meeting_id: str) -> SoftDeleteResult:
        """Mark one meeting deleted.

        Deleting an already-deleted meeting succeeds with modified_count 0.

        Raises:
            MeetingValidationError: meeting_id is malformed.
            MeetingNotFoundError: No meeting has this id.
            MeetingPersistenceError: The update failed.
        """
        meeting_id = _normalize_id("id", meeting_id)

        try:
            result = await self._repository.soft_delete(meeting_id)
        except SQLAlchemyError as exc:
            raise self._fail("delete", exc) from exc

        if result.matched_count == 0:
            meeting_operations_total.labels(operation="delete", outcome="not_found").inc()
            raise MeetingNotFoundError("Meeting not found")

        meeting_operations_total.labels(operation="delete", outcome="success").inc()
        return result

    async def soft_delete_many(self, meeting_ids: Sequence[Any]) -> SoftDeleteResult:
        """Mark every meeting in meeting_ids deleted with a single update.

        Succeeds only when at least one meeting matched and at least one
        changed state; a batch of already-deleted meetings is reported as a
        failure.

        Raises:
            MeetingValidationError: The list is empty or an id is malformed.
            MeetingNotFoundError: Nothing matched or nothing changed.
            MeetingPersistenceError: The update failed.
        """
        if not meeting_ids:
            raise MeetingValidationError("ids", "No meeting ids provided")
        ids = _normalize_ids("ids", meeting_ids)

        try:
            result = await self._repository.soft_delete_many(ids)
        except SQLAlchemyError as exc:
            raise self._fail("delete_many", exc) from exc

        if result.matched_count > 0 and result.modified_count > 0:
            meeting_operations_total.labels(
                operation="delete_many", outcome="success"
            ).inc()
            return result

        logger.warning(
            "meeting.delete_many_no_change",
            requested=len(ids),
            matched=result.matched_count,
            modified=result.modified_count,
        )
        meeting_operations_total.labels(
            operation="delete_many", outcome="not_found"
        ).inc()
        raise MeetingNotFoundError("Failed to remove meetings")
