"""
Reservation endpoints: conflict-checked item bookings.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.api.deps import get_audit, get_current_user_id
from gearhub.db.session import get_db
from gearhub.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationDetail,
    ReservationDeleteResponse,
)
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.reservation_service import (
    create_reservation,
    delete_reservation,
    list_reservations_for_event,
    list_reservations_for_item,
)

router = APIRouter(tags=["Reservations"])


@router.post("/reservations", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation_endpoint(
    reservation_data: ReservationCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """
    Reserve an item for an event.

    Returns 409 if the item is already reserved for an event whose dates
    overlap (sharing a single day counts).
    """
    return await create_reservation(
        db,
        item_id=reservation_data.item_id,
        event_id=reservation_data.event_id,
        actor_id=user_id,
        condition_note=reservation_data.condition_note,
        assigned_by_user_id=reservation_data.assigned_by_user_id,
        audit=audit,
    )


@router.delete("/reservations/{reservation_id}", response_model=ReservationDeleteResponse)
async def delete_reservation_endpoint(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    await delete_reservation(db, reservation_id, actor_id=user_id, audit=audit)
    return ReservationDeleteResponse(
        message="Reservation deleted successfully",
        reservation_id=reservation_id,
    )


@router.get("/events/{event_id}/reservations", response_model=list[ReservationDetail])
async def list_event_reservations(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_reservations_for_event(db, event_id)


@router.get("/items/{item_id}/reservations", response_model=list[ReservationDetail])
async def list_item_reservations(
    item_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_reservations_for_item(db, item_id)
