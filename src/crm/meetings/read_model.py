"""Read-model assembly for meetings.

Pure functions that turn stored meetings plus their resolved reference
records into the list and detail shapes. The repository decides how the
references are fetched; these functions decide what is returned.

Lookup semantics: resolved records keep the first-seen order of the
meeting's id list, a repeated id resolves once, and ids with no matching
record are dropped. Deleted contacts and leads are still returned; only the
creator's deletion affects list results.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from src.crm.meetings.schemas import (
    ContactSummary,
    EnrichedMeeting,
    LeadSummary,
    Meeting,
    MeetingDetail,
    UserSummary,
)


def _resolve(ids: Iterable[str], records: Mapping[str, object]) -> list:
    resolved = []
    seen: set[str] = set()
    for i in ids:
        if i in records and i not in seen:
            seen.add(i)
            resolved.append(records[i])
    return resolved


def collect_reference_ids(
    meetings: Iterable[Meeting],
) -> tuple[set[str], set[str], set[str]]:
    """Return the contact, lead, and user ids referenced by meetings."""
    contact_ids: set[str] = set()
    lead_ids: set[str] = set()
    user_ids: set[str] = set()
    for meeting in meetings:
        contact_ids.update(meeting.attendees)
        lead_ids.update(meeting.attendees_lead)
        if meeting.created_by:
            user_ids.add(meeting.created_by)
    return contact_ids, lead_ids, user_ids


def build_list_view(
    meetings: Iterable[Meeting],
    contacts: Mapping[str, ContactSummary],
    leads: Mapping[str, LeadSummary],
    users: Mapping[str, UserSummary],
) -> list[EnrichedMeeting]:
    """Build list rows, dropping meetings whose creator is missing or deleted.

    Args:
        meetings: Base meetings, already filtered to deleted=False.
        contacts: Resolved contacts keyed by id string.
        leads: Resolved leads keyed by id string.
        users: Resolved users keyed by id string.

    Returns:
        EnrichedMeeting rows in the order of the input meetings.
    """
    rows: list[EnrichedMeeting] = []
    for meeting in meetings:
        creator = users.get(meeting.created_by) if meeting.created_by else None
        if creator is None or creator.deleted:
            continue
        rows.append(
            EnrichedMeeting(
                **meeting.model_dump(),
                attendees_details=_resolve(meeting.attendees, contacts),
                attendees_lead_details=_resolve(meeting.attendees_lead, leads),
                created_by_name=creator.username,
            )
        )
    return rows


def build_detail_view(
    meeting: Meeting,
    contacts: Mapping[str, ContactSummary],
    leads: Mapping[str, LeadSummary],
    users: Mapping[str, UserSummary],
) -> MeetingDetail:
    """Build the single-meeting view; no deletion filter is applied."""
    creator = users.get(meeting.created_by) if meeting.created_by else None
    data = meeting.model_dump(exclude={"attendees", "attendees_lead"})
    return MeetingDetail(
        **data,
        attendees=_resolve(meeting.attendees, contacts),
        attendees_lead=_resolve(meeting.attendees_lead, leads),
        created_by_name=creator.username if creator else None,
    )
