"""Integration tests for meeting API endpoints.

Uses InMemoryMeetingRepository behind a real MeetingService and httpx
AsyncClient over a minimal app with the meetings router. Covers the status
mapping (201/200/404/422/503) and response shapes for every route.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from src.crm.meetings.service import MeetingService


async def _create(client: AsyncClient, **body) -> dict:
    response = await client.post("/api/v1/meetings", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# ── Create ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_meeting(client_and_repo):
    """POST /api/v1/meetings -> 201 with stored record."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    contact_id = repo.add_contact("Ada")

    data = await _create(
        client,
        agenda="Q1 review",
        attendees=[contact_id],
        attendees_lead=[],
        created_by=user_id,
    )

    assert data["agenda"] == "Q1 review"
    assert data["deleted"] is False
    assert data["attendees"] == [contact_id]
    assert "id" in data
    assert data["timestamp"]


@pytest.mark.asyncio
async def test_create_ignores_client_timestamp(client_and_repo):
    """A timestamp in the body is not trusted."""
    client, repo = client_and_repo

    data = await _create(client, agenda="x", timestamp="1999-01-01T00:00:00Z")

    assert not data["timestamp"].startswith("1999")


@pytest.mark.asyncio
async def test_create_invalid_attendee(client_and_repo):
    """POST with a malformed attendee id -> 422 naming the field, nothing stored."""
    client, repo = client_and_repo

    response = await client.post(
        "/api/v1/meetings",
        json={"agenda": "x", "attendees": ["not-an-id"]},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "error": "Invalid attendees value",
        "field": "attendees",
    }
    assert repo.stored_count() == 0


@pytest.mark.asyncio
async def test_create_invalid_lead(client_and_repo):
    client, repo = client_and_repo

    response = await client.post(
        "/api/v1/meetings",
        json={"attendees_lead": ["507f1f77bcf86cd799439011"]},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "attendees_lead"


@pytest.mark.asyncio
async def test_create_null_attendee_lists(client_and_repo):
    """Explicit null attendee lists are stored as empty lists."""
    client, repo = client_and_repo

    data = await _create(client, agenda="x", attendees=None, attendees_lead=None)

    assert data["attendees"] == []
    assert data["attendees_lead"] == []
    assert repo.stored(data["id"]).attendees == []


@pytest.mark.asyncio
async def test_create_non_string_attendee(client_and_repo):
    """A non-string attendee id -> 422 naming the field, nothing stored."""
    client, repo = client_and_repo

    response = await client.post("/api/v1/meetings", json={"attendees": [123]})

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "error": "Invalid attendees value",
        "field": "attendees",
    }
    assert repo.stored_count() == 0


# ── List ─────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_meetings_enriched(client_and_repo):
    """GET /api/v1/meetings -> 200 with details and created_by_name."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    contact_id = repo.add_contact("Ada")
    lead_id = repo.add_lead("Globex")
    await _create(
        client,
        agenda="kickoff",
        attendees=[contact_id],
        attendees_lead=[lead_id],
        created_by=user_id,
    )

    response = await client.get("/api/v1/meetings")

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["created_by_name"] == "jdoe"
    assert rows[0]["attendees_details"][0]["id"] == contact_id
    assert rows[0]["attendees_lead_details"][0]["id"] == lead_id
    assert "users" not in rows[0]


@pytest.mark.asyncio
async def test_list_filter_and_deleted_exclusion(client_and_repo):
    """GET with filters never surfaces deleted meetings."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    a = await _create(client, agenda="a", location="HQ", created_by=user_id)
    b = await _create(client, agenda="b", location="HQ", created_by=user_id)
    await client.delete(f"/api/v1/meetings/{b['id']}")

    response = await client.get("/api/v1/meetings", params={"location": "HQ"})

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [a["id"]]


@pytest.mark.asyncio
async def test_list_invalid_created_by(client_and_repo):
    client, repo = client_and_repo

    response = await client.get("/api/v1/meetings", params={"created_by": "bogus"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_empty_created_by_rejected(client_and_repo):
    """An empty created_by is validated like any other value."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    await _create(client, agenda="a", created_by=user_id)

    response = await client.get("/api/v1/meetings", params={"created_by": ""})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "created_by"


@pytest.mark.asyncio
async def test_list_filter_by_notes(client_and_repo):
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    keep = await _create(client, agenda="a", notes="keep", created_by=user_id)
    await _create(client, agenda="b", notes="other", created_by=user_id)

    response = await client.get("/api/v1/meetings", params={"notes": "keep"})

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [keep["id"]]


@pytest.mark.asyncio
async def test_list_filter_by_date_time(client_and_repo):
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    await _create(client, agenda="a", date_time="2026-03-01T10:00:00Z", created_by=user_id)
    later = await _create(
        client, agenda="b", date_time="2026-03-02T10:00:00Z", created_by=user_id
    )

    response = await client.get(
        "/api/v1/meetings", params={"date_time": "2026-03-02T10:00:00Z"}
    )

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [later["id"]]


@pytest.mark.asyncio
async def test_list_unknown_filter_key_rejected(client_and_repo):
    """A misspelled filter key -> 422 instead of an unfiltered list."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    await _create(client, agenda="a", created_by=user_id)

    response = await client.get("/api/v1/meetings", params={"agnda": "a"})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "agnda"
    assert "list_meetings" not in repo.calls


@pytest.mark.asyncio
async def test_list_deleted_param_cannot_expose_deleted(client_and_repo):
    """?deleted=true is accepted but deleted meetings stay hidden."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    live = await _create(client, agenda="a", created_by=user_id)
    gone = await _create(client, agenda="b", created_by=user_id)
    await client.delete(f"/api/v1/meetings/{gone['id']}")

    response = await client.get("/api/v1/meetings", params={"deleted": "true"})

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [live["id"]]


@pytest.mark.asyncio
async def test_list_store_fault(client_and_repo):
    """Store fault on list -> 503."""
    client, repo = client_and_repo
    repo.list_meetings = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("db down"))
    )

    response = await client.get("/api/v1/meetings")

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "Failed to list meeting"


# ── View ─────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_meeting(client_and_repo):
    """GET /api/v1/meetings/{id} -> 200 with attendees resolved in place."""
    client, repo = client_and_repo
    user_id = repo.add_user("jdoe")
    contact_id = repo.add_contact("Ada")
    created = await _create(client, agenda="x", attendees=[contact_id], created_by=user_id)

    response = await client.get(f"/api/v1/meetings/{created['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["attendees"][0]["first_name"] == "Ada"
    assert data["created_by_name"] == "jdoe"


@pytest.mark.asyncio
async def test_get_meeting_not_found(client_and_repo):
    """GET /api/v1/meetings/{unknown} -> 404."""
    client, repo = client_and_repo

    response = await client.get(f"/api/v1/meetings/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"] == {"message": "No data found."}


@pytest.mark.asyncio
async def test_get_meeting_malformed_id(client_and_repo):
    client, repo = client_and_repo

    response = await client.get("/api/v1/meetings/abc")

    assert response.status_code == 422


# ── Soft Delete ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_meeting(client_and_repo):
    """DELETE /api/v1/meetings/{id} -> 200 {message, result}."""
    client, repo = client_and_repo
    created = await _create(client, agenda="x")

    response = await client.delete(f"/api/v1/meetings/{created['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Meeting deleted successfully"
    assert data["result"] == {"matched_count": 1, "modified_count": 1}
    assert repo.stored(created["id"]).deleted is True


@pytest.mark.asyncio
async def test_delete_meeting_not_found(client_and_repo):
    client, repo = client_and_repo

    response = await client.delete(f"/api/v1/meetings/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["detail"] == {"message": "Meeting not found"}


@pytest.mark.asyncio
async def test_delete_many(client_and_repo):
    """POST /api/v1/meetings/delete-many -> 200 when something changed."""
    client, repo = client_and_repo
    a = await _create(client, agenda="a")
    b = await _create(client, agenda="b")

    response = await client.post(
        "/api/v1/meetings/delete-many", json=[a["id"], b["id"], str(uuid.uuid4())]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Meetings removed successfully"
    assert data["result"]["matched_count"] == 2
    assert data["result"]["modified_count"] == 2


@pytest.mark.asyncio
async def test_delete_many_nothing_changed(client_and_repo):
    """Batch of already-deleted meetings -> 404 with success false."""
    client, repo = client_and_repo
    a = await _create(client, agenda="a")
    await client.post("/api/v1/meetings/delete-many", json=[a["id"]])

    response = await client.post("/api/v1/meetings/delete-many", json=[a["id"]])

    assert response.status_code == 404
    assert response.json()["detail"] == {
        "success": False,
        "message": "Failed to remove meetings",
    }


@pytest.mark.asyncio
async def test_delete_many_malformed_id(client_and_repo):
    client, repo = client_and_repo

    response = await client.post("/api/v1/meetings/delete-many", json=["x"])

    assert response.status_code == 422


# ── Service Availability ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_meetings_api_503_when_not_initialized(make_app):
    """app.state.meeting_service = None -> 503."""
    app = make_app(None)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/meetings")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_meetings_api_with_explicit_service(make_app, repo):
    app = make_app(MeetingService(repository=repo))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/meetings")
    assert response.status_code == 200
    assert response.json() == []
