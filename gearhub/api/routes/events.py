"""
Event directory endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.api.deps import get_audit, get_current_user_id
from gearhub.db.session import get_db
from gearhub.schemas.event import EventCreate, EventDeleteResponse, EventResponse, EventUpdate
from gearhub.services.event_service import create_event, delete_event, get_event, list_events, update_event
from gearhub.services.interfaces.audit import AuditSink

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    return await create_event(db, event_data, actor_id=user_id, audit=audit)


@router.get("/", response_model=list[EventResponse])
async def list_events_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List all events, latest start date first. Not cached (reservations need current ranges)."""
    return await list_events(db)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_event(db, event_id)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    patch: EventUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """Update only the fields present in the body."""
    return await update_event(db, event_id, patch, actor_id=user_id, audit=audit)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """Delete an event. Its reservations and allocations are kept."""
    event = await delete_event(db, event_id, actor_id=user_id, audit=audit)
    return EventDeleteResponse(message=f"Event '{event.name}' was deleted.", event_id=event_id)
