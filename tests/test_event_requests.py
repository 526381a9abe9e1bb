"""
Tests for the event request workflow: submit, approve, deny.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import AlreadyDecided, InvalidRange, InvalidTransition, NotFound
from gearhub.models import Event, EventRequest, RequestStatus
from gearhub.schemas.event_request import EventRequestCreate
from gearhub.services import event_request_service
from gearhub.services.event_request_service import (
    decide,
    get_event_request,
    list_event_requests,
    submit_event_request,
)

from conftest import ACTOR_ID

REVIEWER_ID = 2


def _request_data(**overrides) -> EventRequestCreate:
    data = {
        "name": "Autumn Showcase",
        "location": "Pier 9",
        "start_date": date(2024, 10, 1),
        "end_date": date(2024, 10, 3),
        "requested_gear": "2x LED wall, PA system",
        "notes": "Load-in the evening before",
    }
    data.update(overrides)
    return EventRequestCreate(**data)


async def _event_count(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(Event))).scalar()


@pytest.mark.asyncio
async def test_submit_creates_pending_request(db_session, audit_sink):
    event_request = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)

    assert event_request.status == RequestStatus.PENDING.value
    assert event_request.requested_by_user_id == ACTOR_ID
    assert event_request.event_id is None
    assert audit_sink.actions() == ["event_request_created"]


@pytest.mark.asyncio
async def test_submit_rejects_inverted_range(db_session, audit_sink):
    with pytest.raises(InvalidRange):
        await submit_event_request(
            db_session,
            ACTOR_ID,
            _request_data(start_date=date(2024, 10, 5)),
            audit=audit_sink,
        )
    count = (await db_session.execute(select(func.count()).select_from(EventRequest))).scalar()
    assert count == 0


@pytest.mark.asyncio
async def test_approve_creates_exactly_one_event(db_session, audit_sink):
    pending = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)

    approved = await decide(db_session, pending.id, RequestStatus.APPROVED, REVIEWER_ID, audit=audit_sink)
    assert approved.status == RequestStatus.APPROVED.value
    assert approved.decided_by_user_id == REVIEWER_ID
    assert approved.decided_at is not None
    assert approved.event_id is not None

    events = (await db_session.execute(select(Event))).scalars().all()
    assert len(events) == 1
    event = events[0]
    assert event.id == approved.event_id
    assert (event.name, event.location) == ("Autumn Showcase", "Pier 9")
    assert (event.start_date, event.end_date) == (date(2024, 10, 1), date(2024, 10, 3))
    assert event.status == "Planning"

    assert audit_sink.actions() == ["event_request_created", "event_request_approved"]


@pytest.mark.asyncio
async def test_deny_creates_no_event(db_session, audit_sink):
    pending = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)

    denied = await decide(db_session, pending.id, RequestStatus.DENIED, REVIEWER_ID, audit=audit_sink)
    assert denied.status == RequestStatus.DENIED.value
    assert denied.event_id is None
    assert await _event_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("first, second", [
    (RequestStatus.APPROVED, RequestStatus.APPROVED),
    (RequestStatus.APPROVED, RequestStatus.DENIED),
    (RequestStatus.DENIED, RequestStatus.APPROVED),
])
async def test_decisions_are_final(db_session, audit_sink, first, second):
    pending = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)
    request_id = pending.id
    await decide(db_session, request_id, first, REVIEWER_ID, audit=audit_sink)

    with pytest.raises(AlreadyDecided):
        await decide(db_session, request_id, second, REVIEWER_ID, audit=audit_sink)

    expected_events = 1 if first is RequestStatus.APPROVED else 0
    assert await _event_count(db_session) == expected_events
    stored = await get_event_request(db_session, request_id)
    assert stored.status == first.value


@pytest.mark.asyncio
@pytest.mark.parametrize("decision", [RequestStatus.PENDING, "Maybe"])
async def test_invalid_decision(db_session, audit_sink, decision):
    pending = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)
    with pytest.raises(InvalidTransition):
        await decide(db_session, pending.id, decision, REVIEWER_ID, audit=audit_sink)


@pytest.mark.asyncio
async def test_decide_missing_request(db_session, audit_sink):
    with pytest.raises(NotFound):
        await decide(db_session, 777, RequestStatus.APPROVED, REVIEWER_ID, audit=audit_sink)


@pytest.mark.asyncio
async def test_failed_promotion_leaves_request_pending(db_session, audit_sink, monkeypatch):
    """If creating the event fails, the approval rolls back with it."""
    pending = await submit_event_request(db_session, ACTOR_ID, _request_data(), audit=audit_sink)
    request_id = pending.id

    async def broken_insert(db, event_request):
        raise RuntimeError("event table unavailable")

    monkeypatch.setattr(event_request_service, "insert_promoted_event", broken_insert)

    with pytest.raises(RuntimeError):
        await decide(db_session, request_id, RequestStatus.APPROVED, REVIEWER_ID, audit=audit_sink)

    stored = await get_event_request(db_session, request_id)
    await db_session.refresh(stored)
    assert stored.status == RequestStatus.PENDING.value
    assert stored.decided_by_user_id is None
    assert await _event_count(db_session) == 0
    assert audit_sink.actions() == ["event_request_created"]

    monkeypatch.undo()
    approved = await decide(db_session, request_id, RequestStatus.APPROVED, REVIEWER_ID, audit=audit_sink)
    assert approved.event_id is not None


@pytest.mark.asyncio
async def test_list_filters_by_status(db_session, audit_sink):
    first = await submit_event_request(db_session, ACTOR_ID, _request_data(name="First"), audit=audit_sink)
    second = await submit_event_request(db_session, ACTOR_ID, _request_data(name="Second"), audit=audit_sink)
    await decide(db_session, first.id, RequestStatus.DENIED, REVIEWER_ID, audit=audit_sink)

    pending = await list_event_requests(db_session, RequestStatus.PENDING)
    assert [r.id for r in pending] == [second.id]

    everything = await list_event_requests(db_session)
    assert {r.id for r in everything} == {first.id, second.id}


@pytest.mark.asyncio
async def test_event_request_endpoints(client: AsyncClient, actor_headers, db_session):
    created = await client.post(
        "/api/v1/event-requests/",
        json={
            "name": "Winter Gala",
            "location": "Grand Hotel",
            "start_date": "2024-12-12",
            "end_date": "2024-12-13",
        },
        headers=actor_headers,
    )
    assert created.status_code == 201
    request_id = created.json()["id"]
    assert created.json()["status"] == "Pending"

    listed = await client.get("/api/v1/event-requests/?status=Pending", headers=actor_headers)
    assert [r["id"] for r in listed.json()] == [request_id]

    approved = await client.put(
        f"/api/v1/event-requests/{request_id}/status",
        json={"status": "Approved"},
        headers=actor_headers,
    )
    assert approved.status_code == 200
    event_id = approved.json()["event_id"]

    event = await client.get(f"/api/v1/events/{event_id}", headers=actor_headers)
    assert event.json()["name"] == "Winter Gala"

    again = await client.put(
        f"/api/v1/event-requests/{request_id}/status",
        json={"status": "Denied"},
        headers=actor_headers,
    )
    assert again.status_code == 409
    assert again.json()["code"] == "already_decided"

    bogus = await client.put(
        f"/api/v1/event-requests/{request_id}/status",
        json={"status": "Maybe"},
        headers=actor_headers,
    )
    assert bogus.status_code == 422
