"""REST API endpoints for meetings.

Provides create, list, view, soft delete, and batch soft delete. The
MeetingService instance lives on app.state (set up in the application
lifespan); routes respond 503 when it is missing.

Status mapping, shared by every route:
- MeetingValidationError -> 422
- MeetingNotFoundError -> 404 (delete-many adds success: false)
- MeetingPersistenceError -> 503
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, NoReturn

from fastapi import APIRouter, Body, HTTPException, Query, Request, status
from pydantic import BaseModel

from src.crm.meetings.schemas import (
    EnrichedMeeting,
    Meeting,
    MeetingCreate,
    MeetingDetail,
    MeetingFilter,
    SoftDeleteResult,
)
from src.crm.meetings.service import (
    MeetingNotFoundError,
    MeetingPersistenceError,
    MeetingService,
    MeetingValidationError,
)

router = APIRouter(prefix="/meetings", tags=["meetings"])

# Query keys accepted by GET /meetings. "deleted" is accepted but always false.
_LIST_QUERY_KEYS = frozenset(
    {"agenda", "location", "related", "date_time", "notes", "created_by", "deleted"}
)


# ── Request / Response Schemas ───────────────────────────────────────────────


class CreateMeetingRequest(BaseModel):
    """Request body for creating a meeting. A client timestamp is ignored."""

    agenda: str | None = None
    attendees: list[Any] | None = None
    attendees_lead: list[Any] | None = None
    location: str | None = None
    related: str | None = None
    date_time: datetime | None = None
    notes: str | None = None
    created_by: Any = None


class DeleteResponse(BaseModel):
    """Acknowledgement for soft delete operations."""

    message: str
    result: SoftDeleteResult


# ── Dependency Injection Helper ──────────────────────────────────────────────


def _get_meeting_service(request: Request) -> MeetingService:
    """Retrieve MeetingService from app.state, 503 if not available."""
    service = getattr(request.app.state, "meeting_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting service not initialized",
        )
    return service


def _raise_http(exc: Exception, batch: bool = False) -> NoReturn:
    """Translate a meeting service error into an HTTPException."""
    if isinstance(exc, MeetingValidationError):
        raise HTTPException(
            status_code=422,
            detail={"error": exc.message, "field": exc.field},
        ) from exc
    if isinstance(exc, MeetingNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=(
                {"success": False, "message": exc.message}
                if batch
                else {"message": exc.message}
            ),
        ) from exc
    if isinstance(exc, MeetingPersistenceError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": f"Failed to {exc.operation} meeting", "message": exc.message},
        ) from exc
    raise exc


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.post("", response_model=Meeting, status_code=201)
async def create_meeting(
    body: CreateMeetingRequest,
    request: Request,
) -> Meeting:
    """Create a meeting."""
    service = _get_meeting_service(request)
    data = MeetingCreate(**body.model_dump())
    try:
        return await service.create(data)
    except (MeetingValidationError, MeetingPersistenceError) as exc:
        _raise_http(exc)


@router.get("", response_model=list[EnrichedMeeting])
async def list_meetings(
    request: Request,
    agenda: str | None = Query(default=None, description="Filter by agenda"),
    location: str | None = Query(default=None, description="Filter by location"),
    related: str | None = Query(default=None, description="Filter by related entity"),
    date_time: datetime | None = Query(default=None, description="Filter by meeting time"),
    notes: str | None = Query(default=None, description="Filter by notes"),
    created_by: str | None = Query(default=None, description="Filter by creator user ID"),
) -> list[EnrichedMeeting]:
    """List non-deleted meetings with resolved attendees, leads, and creator name.

    Unknown query keys are rejected with 422 instead of being ignored.
    """
    service = _get_meeting_service(request)

    for key in request.query_params:
        if key not in _LIST_QUERY_KEYS:
            _raise_http(MeetingValidationError(key, f"Unknown filter field: {key}"))

    filters = MeetingFilter(
        agenda=agenda,
        location=location,
        related=related,
        date_time=date_time,
        notes=notes,
        created_by=created_by,
    )

    try:
        return await service.list(filters)
    except (MeetingValidationError, MeetingPersistenceError) as exc:
        _raise_http(exc)


@router.post("/delete-many", response_model=DeleteResponse)
async def delete_many_meetings(
    request: Request,
    meeting_ids: list[str] = Body(..., description="Meeting IDs to soft-delete"),
) -> DeleteResponse:
    """Soft-delete a batch of meetings."""
    service = _get_meeting_service(request)
    try:
        result = await service.soft_delete_many(meeting_ids)
    except (
        MeetingValidationError,
        MeetingNotFoundError,
        MeetingPersistenceError,
    ) as exc:
        _raise_http(exc, batch=True)
    return DeleteResponse(message="Meetings removed successfully", result=result)


@router.get("/{meeting_id}", response_model=MeetingDetail)
async def get_meeting(
    meeting_id: str,
    request: Request,
) -> MeetingDetail:
    """Get a single meeting with attendees and leads resolved."""
    service = _get_meeting_service(request)
    try:
        return await service.get_one(meeting_id)
    except (
        MeetingValidationError,
        MeetingNotFoundError,
        MeetingPersistenceError,
    ) as exc:
        _raise_http(exc)


@router.delete("/{meeting_id}", response_model=DeleteResponse)
async def delete_meeting(
    meeting_id: str,
    request: Request,
) -> DeleteResponse:
    """Soft-delete a single meeting."""
    service = _get_meeting_service(request)
    try:
        result = await service.soft_delete(meeting_id)
    except (
        MeetingValidationError,
        MeetingNotFoundError,
        MeetingPersistenceError,
    ) as exc:
        _raise_http(exc)
    return DeleteResponse(message="Meeting deleted successfully", result=result)
