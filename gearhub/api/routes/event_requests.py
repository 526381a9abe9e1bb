"""
Event request endpoints: submit, review, approve or deny.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.api.deps import get_audit, get_current_user_id
from gearhub.db.session import get_db
from gearhub.models.event_request import RequestStatus
from gearhub.schemas.event_request import EventRequestCreate, EventRequestDecision, EventRequestResponse
from gearhub.services.event_request_service import decide, list_event_requests, submit_event_request
from gearhub.services.interfaces.audit import AuditSink

router = APIRouter(prefix="/event-requests", tags=["Event Requests"])


@router.post("/", response_model=EventRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_event_request_endpoint(
    request_data: EventRequestCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    return await submit_event_request(db, user_id, request_data, audit=audit)


@router.get("/", response_model=list[EventRequestResponse])
async def list_event_requests_endpoint(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_event_requests(db, status_filter)


@router.put("/{request_id}/status", response_model=EventRequestResponse)
async def decide_event_request_endpoint(
    request_id: int,
    decision: EventRequestDecision,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    """
    Approve or deny a pending request.
    Approval creates the event in the same transaction.
    """
    return await decide(db, request_id, decision.status, actor_id=user_id, audit=audit)
