"""Test fixtures for the meeting service and API.

Provides:
- InMemoryMeetingRepository: MeetingRepository test double with seed helpers
- repo / service fixtures
- client_and_repo: httpx AsyncClient over a minimal app with the meetings
  router and an in-memory MeetingService on app.state
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Iterable
from datetime import datetime

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.crm.meetings.schemas import (
    ContactSummary,
    LeadSummary,
    Meeting,
    MeetingCreate,
    MeetingFilter,
    SoftDeleteResult,
    UserSummary,
)
from src.crm.meetings.service import MeetingService


# ── In-Memory Test Double ────────────────────────────────────────────────────


class InMemoryMeetingRepository:
    """In-memory MeetingRepository for testing without a database.

    Records the name of every call in ``calls`` so tests can assert which
    queries ran.
    """

    def __init__(self) -> None:
        self._meetings: dict[str, Meeting] = {}
        self._contacts: dict[str, ContactSummary] = {}
        self._leads: dict[str, LeadSummary] = {}
        self._users: dict[str, UserSummary] = {}
        self.calls: list[str] = []

    # ── Seed helpers ─────────────────────────────────────────────────────

    def add_user(self, username: str, deleted: bool = False) -> str:
        user_id = str(uuid.uuid4())
        self._users[user_id] = UserSummary(id=user_id, username=username, deleted=deleted)
        return user_id

    def set_user_deleted(self, user_id: str, deleted: bool = True) -> None:
        self._users[user_id] = self._users[user_id].model_copy(update={"deleted": deleted})

    def rename_user(self, user_id: str, username: str) -> None:
        self._users[user_id] = self._users[user_id].model_copy(update={"username": username})

    def add_contact(self, first_name: str, deleted: bool = False) -> str:
        contact_id = str(uuid.uuid4())
        self._contacts[contact_id] = ContactSummary(
            id=contact_id, first_name=first_name, deleted=deleted
        )
        return contact_id

    def add_lead(self, lead_name: str, deleted: bool = False) -> str:
        lead_id = str(uuid.uuid4())
        self._leads[lead_id] = LeadSummary(id=lead_id, lead_name=lead_name, deleted=deleted)
        return lead_id

    def stored(self, meeting_id: str) -> Meeting:
        return self._meetings[meeting_id]

    def stored_count(self) -> int:
        return len(self._meetings)

    # ── Meetings ─────────────────────────────────────────────────────────

    async def create_meeting(self, data: MeetingCreate, timestamp: datetime) -> Meeting:
        self.calls.append("create_meeting")
        meeting_id = str(uuid.uuid4())
        meeting = Meeting(id=meeting_id, timestamp=timestamp, deleted=False, **data.model_dump())
        self._meetings[meeting_id] = meeting
        return meeting

    async def get_meeting(self, meeting_id: str) -> Meeting | None:
        self.calls.append("get_meeting")
        return self._meetings.get(meeting_id)

    async def list_meetings(self, filters: MeetingFilter | None = None) -> list[Meeting]:
        self.calls.append("list_meetings")
        result = [m for m in self._meetings.values() if not m.deleted]
        if filters:
            for field in (
                "agenda", "location", "related", "date_time", "notes", "created_by"
            ):
                value = getattr(filters, field)
                if value is not None:
                    result = [m for m in result if getattr(m, field) == value]
        return sorted(result, key=lambda m: m.timestamp, reverse=True)

    async def soft_delete(self, meeting_id: str) -> SoftDeleteResult:
        self.calls.append("soft_delete")
        return self._flag_deleted([meeting_id])

    async def soft_delete_many(self, meeting_ids: list[str]) -> SoftDeleteResult:
        self.calls.append("soft_delete_many")
        return self._flag_deleted(meeting_ids)

    def _flag_deleted(self, meeting_ids: Iterable[str]) -> SoftDeleteResult:
        matched = modified = 0
        for meeting_id in set(meeting_ids):
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                continue
            matched += 1
            if not meeting.deleted:
                modified += 1
                self._meetings[meeting_id] = meeting.model_copy(update={"deleted": True})
        return SoftDeleteResult(matched_count=matched, modified_count=modified)

    # ── Reference Lookups ────────────────────────────────────────────────

    async def get_contacts(self, contact_ids: Iterable[str]) -> dict[str, ContactSummary]:
        self.calls.append("get_contacts")
        return {i: self._contacts[i] for i in contact_ids if i in self._contacts}

    async def get_leads(self, lead_ids: Iterable[str]) -> dict[str, LeadSummary]:
        self.calls.append("get_leads")
        return {i: self._leads[i] for i in lead_ids if i in self._leads}

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, UserSummary]:
        self.calls.append("get_users")
        return {i: self._users[i] for i in user_ids if i in self._users}


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def repo() -> InMemoryMeetingRepository:
    return InMemoryMeetingRepository()


@pytest.fixture
def service(repo: InMemoryMeetingRepository) -> MeetingService:
    return MeetingService(repository=repo)


def _make_meetings_app(service: MeetingService | None) -> FastAPI:
    """Create a minimal FastAPI app with the meetings router."""
    from src.crm.api.v1.meetings import router

    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.state.meeting_service = service
    return app


@pytest.fixture
def make_app():
    """Factory fixture building a meetings app around a given service."""
    return _make_meetings_app


@pytest_asyncio.fixture
async def client_and_repo(
    repo: InMemoryMeetingRepository, service: MeetingService
) -> AsyncGenerator[tuple[AsyncClient, InMemoryMeetingRepository], None]:
    """Test client over the meetings router backed by the in-memory repository."""
    app = _make_meetings_app(service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client, repo
