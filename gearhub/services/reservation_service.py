"""
Reservation service with a conflict-checked, concurrency-safe create.

CONCURRENCY STRATEGY: Lock by item, check and insert in one transaction
========================================================================

Problem:
  Reserving item I for event E must fail if I is already reserved for any
  event whose date range overlaps E's. Checking in one statement and
  inserting in another lets two requests both pass the check before either
  writes. Result: one item promised to two overlapping events.

Solution:
  1. Take the per-item lock (see item_locks): an asyncio lock in-process,
     plus pg_advisory_xact_lock on PostgreSQL
  2. Inside the same transaction: load the event's range, run the overlap
     query for the item, insert the reservation
  3. Commit, then release the lock

  Everything between the lock and the commit is one unit of work. If a
  transient store error hits, the whole unit (lock included) is rolled back
  and run once more before surfacing StoreUnavailable.

  A conflict raises ConflictingReservation and writes nothing.

Alternatives considered:
  - SERIALIZABLE isolation with retry: correct, but the conflict query is a
    range predicate on a joined table, so PostgreSQL's predicate locks tend to
    abort unrelated bookings under load.
  - SELECT ... FOR UPDATE on the item row: equivalent serialization, but it
    couples the reservation path to the inventory table's row locks.
"""

from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import ConflictingReservation, NotFound
from gearhub.core.logging import get_logger
from gearhub.core.metrics import record_reservation_attempt, reservation_latency
from gearhub.db.transaction import run_in_transaction
from gearhub.models.event import Event
from gearhub.models.item import Item
from gearhub.models.reservation import Reservation
from gearhub.schemas.reservation import ReservationDetail
from gearhub.services.audit_service import emit_audit, get_audit_sink
from gearhub.services.event_service import get_event
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.item_locks import RESERVATION_LOCK_NAMESPACE, acquire_advisory_lock, item_lock
from gearhub.services.item_service import item_exists
from gearhub.services.overlap import DateRange, find_conflicting_reservations

logger = get_logger(__name__)


async def create_reservation(
    db: AsyncSession,
    item_id: int,
    event_id: int,
    actor_id: int,
    condition_note: Optional[str] = None,
    assigned_by_user_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> Reservation:
    """
    Reserve an item for an event if no overlapping reservation exists.

    Raises NotFound (item or event), InvalidRange (event stored with an
    inverted range), ConflictingReservation, or StoreUnavailable.
    """

    async def work() -> Reservation:
        await acquire_advisory_lock(db, RESERVATION_LOCK_NAMESPACE, item_id)

        event = await get_event(db, event_id)
        if not await item_exists(db, item_id):
            raise NotFound("Item", item_id)

        candidate = DateRange.of_event(event)
        clashes = await find_conflicting_reservations(db, item_id, candidate)
        if clashes:
            raise ConflictingReservation(item_id, event_id, [clash_event for _, clash_event in clashes])

        reservation = Reservation(
            item_id=item_id,
            event_id=event_id,
            created_by_user_id=actor_id,
            assigned_by_user_id=assigned_by_user_id,
            condition_note=condition_note,
        )
        db.add(reservation)
        await db.flush()
        await db.refresh(reservation)
        return reservation

    try:
        with reservation_latency.time():
            async with item_lock(item_id):
                reservation = await run_in_transaction(db, work, operation="create_reservation")
    except ConflictingReservation as e:
        record_reservation_attempt("conflict")
        logger.warning(
            "reservation_conflict",
            item_id=item_id,
            event_id=event_id,
            conflicting_events=e.conflicting_event_ids,
        )
        raise
    except Exception:
        record_reservation_attempt("error")
        raise

    record_reservation_attempt("success")
    logger.info(
        "reservation_created",
        reservation_id=reservation.id,
        item_id=item_id,
        event_id=event_id,
        actor_id=actor_id,
    )
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "booking_created",
        {"reservation_id": reservation.id, "item_id": item_id, "event_id": event_id},
    )
    return reservation


def _detail_query():
    return (
        select(
            Reservation.id,
            Reservation.item_id,
            Reservation.event_id,
            Item.name.label("item_name"),
            Item.category.label("item_category"),
            Item.unique_identifier,
            Event.name.label("event_name"),
            Event.start_date,
            Event.end_date,
            Reservation.created_by_user_id,
            Reservation.condition_note,
            Reservation.created_at,
        )
        .join(Item, Item.id == Reservation.item_id)
        .outerjoin(Event, Event.id == Reservation.event_id)
    )


async def list_reservations_for_event(db: AsyncSession, event_id: int) -> list[ReservationDetail]:
    """Reservations for an event with item summaries, in insertion order."""
    result = await db.execute(
        _detail_query().where(Reservation.event_id == event_id).order_by(Reservation.id)
    )
    return [ReservationDetail.model_validate(dict(row)) for row in result.mappings()]


async def list_reservations_for_item(db: AsyncSession, item_id: int) -> list[ReservationDetail]:
    """An item's reservations ordered by event start date (dangling ones last)."""
    result = await db.execute(
        _detail_query()
        .where(Reservation.item_id == item_id)
        .order_by(Event.start_date.is_(None), Event.start_date, Reservation.id)
    )
    return [ReservationDetail.model_validate(dict(row)) for row in result.mappings()]


async def delete_reservation(
    db: AsyncSession,
    reservation_id: int,
    actor_id: int,
    audit: Optional[AuditSink] = None,
) -> Reservation:
    """
    Delete a reservation.
    Item status and allocations are left untouched.
    """

    async def work() -> Reservation:
        result = await db.execute(select(Reservation).where(Reservation.id == reservation_id))
        reservation = result.scalar_one_or_none()
        if not reservation:
            raise NotFound("Reservation", reservation_id)
        await db.execute(delete(Reservation).where(Reservation.id == reservation_id))
        return reservation

    reservation = await run_in_transaction(db, work, operation="delete_reservation")

    logger.info(
        "reservation_deleted",
        reservation_id=reservation_id,
        item_id=reservation.item_id,
        event_id=reservation.event_id,
        actor_id=actor_id,
    )
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "booking_deleted",
        {
            "reservation_id": reservation_id,
            "item_id": reservation.item_id,
            "event_id": reservation.event_id,
        },
    )
    return reservation
