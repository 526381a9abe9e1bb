"""
Event request workflow: proposals that become events on approval.

    Pending --approve--> Approved   (creates an Event)
    Pending --deny-----> Denied

Both outcomes are terminal.

ATOMICITY
=========

Approval is one transaction:
  1. UPDATE event_requests SET status = 'Approved' ...
     WHERE id = :id AND status = 'Pending'
  2. INSERT the event built from the request's name, location and dates
  3. Link the request to the new event

If anything fails after step 1 the whole transaction rolls back and the
request is still Pending: a half-promoted request is never visible.
The conditional UPDATE also decides races between two reviewers: only one
of them sees rowcount == 1, the other gets AlreadyDecided.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import AlreadyDecided, InvalidTransition, NotFound
from gearhub.core.logging import get_logger
from gearhub.core.metrics import record_decision
from gearhub.db.transaction import run_in_transaction
from gearhub.models.event import Event
from gearhub.models.event_request import EventRequest, RequestStatus
from gearhub.schemas.event_request import EventRequestCreate
from gearhub.services.audit_service import emit_audit, get_audit_sink
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.overlap import DateRange

logger = get_logger(__name__)

DECISIONS = {RequestStatus.APPROVED, RequestStatus.DENIED}


async def get_event_request(db: AsyncSession, request_id: int) -> EventRequest:
    result = await db.execute(select(EventRequest).where(EventRequest.id == request_id))
    event_request = result.scalar_one_or_none()
    if not event_request:
        raise NotFound("Event request", request_id)
    return event_request


async def list_event_requests(
    db: AsyncSession,
    status: Optional[RequestStatus] = None,
) -> list[EventRequest]:
    """Requests, newest first, optionally filtered by status."""
    query = select(EventRequest)
    if status is not None:
        query = query.where(EventRequest.status == RequestStatus(status).value)
    result = await db.execute(query.order_by(EventRequest.created_at.desc(), EventRequest.id.desc()))
    return list(result.scalars().all())


async def submit_event_request(
    db: AsyncSession,
    requester_id: int,
    request_data: EventRequestCreate,
    audit: Optional[AuditSink] = None,
) -> EventRequest:
    """File a new Pending request."""
    DateRange(request_data.start_date, request_data.end_date)

    event_request = EventRequest(
        requested_by_user_id=requester_id,
        name=request_data.name,
        location=request_data.location,
        start_date=request_data.start_date,
        end_date=request_data.end_date,
        requested_gear=request_data.requested_gear,
        notes=request_data.notes,
        status=RequestStatus.PENDING.value,
    )

    async def work() -> EventRequest:
        db.add(event_request)
        await db.flush()
        await db.refresh(event_request)
        return event_request

    await run_in_transaction(db, work, operation="submit_event_request")

    logger.info("event_request_created", request_id=event_request.id, name=event_request.name)
    await emit_audit(
        audit or get_audit_sink(),
        requester_id,
        "event_request_created",
        {"request_id": event_request.id, "event_name": event_request.name},
    )
    return event_request


async def insert_promoted_event(db: AsyncSession, event_request: EventRequest) -> Event:
    """Create the Event an approved request stands for."""
    event = Event(
        name=event_request.name,
        location=event_request.location,
        start_date=event_request.start_date,
        end_date=event_request.end_date,
    )
    db.add(event)
    await db.flush()
    return event


async def decide(
    db: AsyncSession,
    request_id: int,
    decision: RequestStatus,
    actor_id: int,
    audit: Optional[AuditSink] = None,
) -> EventRequest:
    """
    Approve or deny a pending request.

    Raises NotFound, AlreadyDecided when the request is no longer Pending,
    or InvalidTransition when `decision` is not Approved/Denied.
    On approval the returned request carries the new event's id.
    """
    try:
        decision = RequestStatus(decision)
    except ValueError:
        raise InvalidTransition(f"Unknown decision: {decision!r}") from None
    if decision not in DECISIONS:
        raise InvalidTransition(f"Decision must be Approved or Denied, got {decision.value}")

    async def work() -> EventRequest:
        event_request = await get_event_request(db, request_id)

        result = await db.execute(
            update(EventRequest)
            .where(
                EventRequest.id == request_id,
                EventRequest.status == RequestStatus.PENDING.value,
            )
            .values(
                status=decision.value,
                decided_by_user_id=actor_id,
                decided_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.refresh(event_request)
            raise AlreadyDecided(
                f"Event request {request_id} was already {event_request.status}"
            )

        if decision is RequestStatus.APPROVED:
            event = await insert_promoted_event(db, event_request)
            await db.execute(
                update(EventRequest)
                .where(EventRequest.id == request_id)
                .values(event_id=event.id)
                .execution_options(synchronize_session=False)
            )

        await db.refresh(event_request)
        return event_request

    event_request = await run_in_transaction(db, work, operation="decide_event_request")

    record_decision(decision.value)
    logger.info(
        "event_request_decided",
        request_id=request_id,
        decision=decision.value,
        event_id=event_request.event_id,
        actor_id=actor_id,
    )

    details = {"request_id": request_id, "event_name": event_request.name}
    if event_request.event_id is not None:
        details["event_id"] = event_request.event_id
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        f"event_request_{decision.value.lower()}",
        details,
    )
    return event_request
