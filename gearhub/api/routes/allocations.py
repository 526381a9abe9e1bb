"""
Allocation endpoints: pickup locations and the Allocated -> Picked Up ->
Returned lifecycle.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.api.deps import get_audit, get_current_user_id
from gearhub.db.session import get_db
from gearhub.schemas.allocation import (
    AllocationCreate,
    AllocationDetail,
    AllocationLocationUpdate,
    AllocationResponse,
    AllocationStatusUpdate,
    BulkAllocationCreate,
)
from gearhub.services.allocation_service import (
    advance_status,
    allocate_items,
    create_allocation,
    list_allocations_for_event,
    remove_allocation,
    update_pickup_location,
)
from gearhub.services.interfaces.audit import AuditSink

router = APIRouter(tags=["Allocations"])


@router.post(
    "/events/{event_id}/allocations",
    response_model=AllocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_allocation_endpoint(
    event_id: int,
    allocation_data: AllocationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    return await create_allocation(
        db,
        event_id=event_id,
        item_id=allocation_data.item_id,
        pickup_location=allocation_data.pickup_location,
        actor_id=user_id,
        audit=audit,
    )


@router.post(
    "/events/{event_id}/allocate-items",
    response_model=list[AllocationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def allocate_items_endpoint(
    event_id: int,
    bulk_data: BulkAllocationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """Allocate several items at once. Nothing is allocated if any item fails."""
    return await allocate_items(
        db,
        event_id=event_id,
        items=[(entry.item_id, entry.pickup_location) for entry in bulk_data.items],
        actor_id=user_id,
        audit=audit,
    )


@router.get("/events/{event_id}/allocations", response_model=list[AllocationDetail])
async def list_allocations_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_allocations_for_event(db, event_id)


@router.post("/allocations/{allocation_id}/status", response_model=AllocationResponse)
async def advance_status_endpoint(
    allocation_id: int,
    status_data: AllocationStatusUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """Mark an allocation as picked up or returned. Steps cannot be skipped."""
    return await advance_status(db, allocation_id, status_data.status, actor_id=user_id, audit=audit)


@router.patch("/allocations/{allocation_id}", response_model=AllocationResponse)
async def update_pickup_location_endpoint(
    allocation_id: int,
    location_data: AllocationLocationUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    return await update_pickup_location(
        db, allocation_id, location_data.pickup_location, actor_id=user_id, audit=audit
    )


@router.delete("/allocations/{allocation_id}", response_model=AllocationResponse)
async def remove_allocation_endpoint(
    allocation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    return await remove_allocation(db, allocation_id, actor_id=user_id, audit=audit)
