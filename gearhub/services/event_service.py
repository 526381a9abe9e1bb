"""
Event directory: CRUD for events.

Events are read by the reservation core for their date range. Deleting an
event does not touch reservations or allocations that reference it.
"""

from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import NotFound
from gearhub.core.logging import get_logger
from gearhub.db.transaction import run_in_transaction
from gearhub.models.event import Event
from gearhub.schemas.event import EventCreate, EventUpdate
from gearhub.services.audit_service import emit_audit, get_audit_sink
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.overlap import DateRange

logger = get_logger(__name__)

NULLABLE_EVENT_FIELDS = {"location"}


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound("Event", event_id)
    return event


async def list_events(db: AsyncSession) -> list[Event]:
    """All events, latest start date first."""
    result = await db.execute(select(Event).order_by(Event.start_date.desc(), Event.id.desc()))
    return list(result.scalars().all())


def build_event(event_data: EventCreate) -> Event:
    DateRange(event_data.start_date, event_data.end_date)
    return Event(
        name=event_data.name,
        location=event_data.location,
        start_date=event_data.start_date,
        end_date=event_data.end_date,
        status=event_data.status,
    )


async def create_event(
    db: AsyncSession,
    event_data: EventCreate,
    actor_id: Optional[int],
    audit: Optional[AuditSink] = None,
) -> Event:
    """Create an event directly (administrator path, no request)."""
    event = build_event(event_data)

    async def work() -> Event:
        db.add(event)
        await db.flush()
        await db.refresh(event)
        return event

    await run_in_transaction(db, work, operation="create_event")

    logger.info("event_created", event_id=event.id, name=event.name)
    await emit_audit(audit or get_audit_sink(), actor_id, "event_created", {"event_id": event.id, "event_name": event.name})
    return event


async def update_event(
    db: AsyncSession,
    event_id: int,
    patch: EventUpdate,
    actor_id: Optional[int],
    audit: Optional[AuditSink] = None,
) -> Event:
    """
    Apply only the fields present in `patch`.

    The merged date range is validated before anything is written.
    Existing reservations are not re-checked against the new range.
    """
    changes = {
        field: value
        for field, value in patch.model_dump(exclude_unset=True).items()
        # location is the only nullable column; null elsewhere means "leave as is"
        if value is not None or field in NULLABLE_EVENT_FIELDS
    }

    async def work() -> Event:
        event = await get_event(db, event_id)
        DateRange(
            changes.get("start_date", event.start_date),
            changes.get("end_date", event.end_date),
        )
        for field, value in changes.items():
            setattr(event, field, value)
        await db.flush()
        await db.refresh(event)
        return event

    event = await run_in_transaction(db, work, operation="update_event")

    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    await emit_audit(audit or get_audit_sink(), actor_id, "event_updated", {"event_id": event_id, "fields": sorted(changes)})
    return event


async def delete_event(
    db: AsyncSession,
    event_id: int,
    actor_id: Optional[int],
    audit: Optional[AuditSink] = None,
) -> Event:
    """Delete an event. Reservations and allocations for it are left in place."""

    async def work() -> Event:
        event = await get_event(db, event_id)
        await db.execute(delete(Event).where(Event.id == event_id))
        return event

    event = await run_in_transaction(db, work, operation="delete_event")

    logger.info("event_deleted", event_id=event_id, name=event.name)
    await emit_audit(audit or get_audit_sink(), actor_id, "event_deleted", {"event_id": event_id, "event_name": event.name})
    return event
