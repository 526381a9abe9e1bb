"""
Allocation lifecycle: hardware handed out for an event and brought back.

State machine (forward only, no skipping):

    Allocated --(mark picked up)--> Picked Up --(mark returned)--> Returned

CONCURRENCY STRATEGY: Compare-and-set on status
===============================================

Problem:
  Two operators press "Mark as Picked Up" at the same moment, or a
  "Mark as Returned" arrives while the pick-up is still in flight.
  Read-then-write would let both succeed from a stale view.

Solution:
  UPDATE allocations SET status = :target ...
  WHERE id = :id AND status = :expected

  `expected` is the status the transition was validated against. If the row
  changed in between, rowcount is 0 and the caller gets InvalidTransition
  naming the status that is actually stored. Exactly one of two racing
  transitions from the same source state wins.

One active allocation per (item, event) is enforced by a partial unique
index (status <> 'Returned'); the pre-check gives a clear error in the
common case and the index catches the race.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import AlreadyAllocated, InvalidTransition, NotFound
from gearhub.core.logging import get_logger
from gearhub.core.metrics import record_allocation_transition
from gearhub.db.transaction import run_in_transaction
from gearhub.models.allocation import Allocation, AllocationStatus
from gearhub.models.item import Item
from gearhub.schemas.allocation import AllocationDetail
from gearhub.services.audit_service import emit_audit, get_audit_sink
from gearhub.services.event_service import get_event
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.item_service import item_exists

logger = get_logger(__name__)

TRANSITION_TIMESTAMPS = {
    AllocationStatus.PICKED_UP: "picked_up_at",
    AllocationStatus.RETURNED: "returned_at",
}


def validate_transition(current: AllocationStatus, target: AllocationStatus) -> None:
    if current.is_terminal:
        raise InvalidTransition(f"Allocation is already {current.value}; no further transitions")
    expected = current.next_status()
    if target is not expected:
        raise InvalidTransition(
            f"Cannot move allocation from {current.value} to {target.value}; "
            f"next status is {expected.value}"
        )


async def _get_allocation(db: AsyncSession, allocation_id: int) -> Allocation:
    result = await db.execute(select(Allocation).where(Allocation.id == allocation_id))
    allocation = result.scalar_one_or_none()
    if not allocation:
        raise NotFound("Allocation", allocation_id)
    return allocation


async def _has_active_allocation(db: AsyncSession, event_id: int, item_id: int) -> bool:
    result = await db.execute(
        select(Allocation.id).where(
            Allocation.event_id == event_id,
            Allocation.item_id == item_id,
            Allocation.status != AllocationStatus.RETURNED.value,
        )
    )
    return result.first() is not None


async def _insert_allocations(
    db: AsyncSession,
    event_id: int,
    items: list[tuple[int, Optional[str]]],
    actor_id: Optional[int],
) -> list[Allocation]:
    await get_event(db, event_id)

    seen: set[int] = set()
    allocations = []
    for item_id, pickup_location in items:
        if item_id in seen:
            raise AlreadyAllocated(f"Item {item_id} appears more than once in this allocation")
        seen.add(item_id)

        if not await item_exists(db, item_id):
            raise NotFound("Item", item_id)
        if await _has_active_allocation(db, event_id, item_id):
            raise AlreadyAllocated(f"Item {item_id} is already allocated to event {event_id}")

        allocation = Allocation(
            event_id=event_id,
            item_id=item_id,
            pickup_location=pickup_location,
            status=AllocationStatus.ALLOCATED.value,
            allocated_by_user_id=actor_id,
            status_changed_at=datetime.now(timezone.utc),
        )
        db.add(allocation)
        allocations.append(allocation)

    try:
        await db.flush()
    except IntegrityError as e:
        # a concurrent request allocated one of the items first
        raise AlreadyAllocated(
            f"One of the items is already allocated to event {event_id}"
        ) from e

    for allocation in allocations:
        await db.refresh(allocation)
    return allocations


async def create_allocation(
    db: AsyncSession,
    event_id: int,
    item_id: int,
    pickup_location: Optional[str],
    actor_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> Allocation:
    """Allocate one item to an event in status Allocated."""

    async def work() -> list[Allocation]:
        return await _insert_allocations(db, event_id, [(item_id, pickup_location)], actor_id)

    (allocation,) = await run_in_transaction(db, work, operation="create_allocation")

    logger.info(
        "item_allocated",
        allocation_id=allocation.id,
        event_id=event_id,
        item_id=item_id,
        pickup_location=pickup_location,
    )
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "item_allocated",
        {"allocation_id": allocation.id, "event_id": event_id, "item_id": item_id},
    )
    return allocation


async def allocate_items(
    db: AsyncSession,
    event_id: int,
    items: Iterable[tuple[int, Optional[str]]],
    actor_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> list[Allocation]:
    """
    Allocate several (item_id, pickup_location) pairs to an event.
    All or nothing: if any item fails, none are allocated.
    """
    items = list(items)

    async def work() -> list[Allocation]:
        return await _insert_allocations(db, event_id, items, actor_id)

    allocations = await run_in_transaction(db, work, operation="allocate_items")

    logger.info("items_allocated", event_id=event_id, count=len(allocations))
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "items_allocated",
        {"event_id": event_id, "item_ids": [a.item_id for a in allocations]},
    )
    return allocations


async def advance_status(
    db: AsyncSession,
    allocation_id: int,
    target_status: AllocationStatus,
    actor_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> Allocation:
    """
    Move an allocation to the immediate next status.

    Raises NotFound, or InvalidTransition when `target_status` is not the
    successor of the stored status (including when a concurrent call got
    there first).
    """
    try:
        target_status = AllocationStatus(target_status)
    except ValueError:
        raise InvalidTransition(f"Unknown allocation status: {target_status!r}") from None

    async def work() -> tuple[Allocation, AllocationStatus]:
        allocation = await _get_allocation(db, allocation_id)
        current = AllocationStatus(allocation.status)
        validate_transition(current, target_status)

        now = datetime.now(timezone.utc)
        values = {"status": target_status.value, "status_changed_at": now}
        values[TRANSITION_TIMESTAMPS[target_status]] = now

        result = await db.execute(
            update(Allocation)
            .where(
                Allocation.id == allocation_id,
                Allocation.status == current.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            # Someone else moved it between our read and our write
            await db.refresh(allocation)
            raise InvalidTransition(
                f"Allocation {allocation_id} changed concurrently; it is now {allocation.status}"
            )

        await db.refresh(allocation)
        return allocation, current

    try:
        allocation, previous = await run_in_transaction(db, work, operation="advance_allocation_status")
    except InvalidTransition:
        record_allocation_transition(target_status.value, applied=False)
        logger.warning(
            "allocation_transition_rejected",
            allocation_id=allocation_id,
            target=target_status.value,
        )
        raise

    record_allocation_transition(target_status.value, applied=True)
    logger.info(
        "allocation_status_changed",
        allocation_id=allocation_id,
        from_status=previous.value,
        to_status=target_status.value,
    )
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "allocation_status_changed",
        {
            "allocation_id": allocation_id,
            "event_id": allocation.event_id,
            "item_id": allocation.item_id,
            "from": previous.value,
            "to": target_status.value,
        },
    )
    return allocation


async def update_pickup_location(
    db: AsyncSession,
    allocation_id: int,
    pickup_location: str,
    actor_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> Allocation:
    """Change where an active allocation is picked up. Returned allocations are frozen."""

    async def work() -> Allocation:
        allocation = await _get_allocation(db, allocation_id)
        result = await db.execute(
            update(Allocation)
            .where(
                Allocation.id == allocation_id,
                Allocation.status != AllocationStatus.RETURNED.value,
            )
            .values(pickup_location=pickup_location)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransition(
                f"Allocation {allocation_id} has been returned; pickup location can no longer change"
            )
        await db.refresh(allocation)
        return allocation

    allocation = await run_in_transaction(db, work, operation="update_pickup_location")

    logger.info("pickup_location_updated", allocation_id=allocation_id, pickup_location=pickup_location)
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "pickup_location_updated",
        {"allocation_id": allocation_id, "pickup_location": pickup_location},
    )
    return allocation


async def remove_allocation(
    db: AsyncSession,
    allocation_id: int,
    actor_id: Optional[int] = None,
    audit: Optional[AuditSink] = None,
) -> Allocation:
    """Deallocate: delete the allocation row. Reservations are not affected."""

    async def work() -> Allocation:
        allocation = await _get_allocation(db, allocation_id)
        await db.execute(delete(Allocation).where(Allocation.id == allocation_id))
        return allocation

    allocation = await run_in_transaction(db, work, operation="remove_allocation")

    logger.info(
        "item_deallocated",
        allocation_id=allocation_id,
        event_id=allocation.event_id,
        item_id=allocation.item_id,
    )
    await emit_audit(
        audit or get_audit_sink(),
        actor_id,
        "item_deallocated",
        {"allocation_id": allocation_id, "event_id": allocation.event_id, "item_id": allocation.item_id},
    )
    return allocation


async def list_allocations_for_event(db: AsyncSession, event_id: int) -> list[AllocationDetail]:
    """Allocations for an event with item name, category and identifier."""
    result = await db.execute(
        select(
            Allocation.id,
            Allocation.event_id,
            Allocation.item_id,
            Item.name.label("item_name"),
            Item.category.label("item_category"),
            Item.unique_identifier,
            Allocation.pickup_location,
            Allocation.status,
            Allocation.status_changed_at,
        )
        .join(Item, Item.id == Allocation.item_id)
        .where(Allocation.event_id == event_id)
        .order_by(Allocation.id)
    )
    return [AllocationDetail.model_validate(dict(row)) for row in result.mappings()]
