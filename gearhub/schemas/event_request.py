"""
Pydantic schemas for event request submission and decisions.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from gearhub.models.event_request import RequestStatus


class EventRequestCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_date: date
    end_date: date
    requested_gear: Optional[str] = None
    notes: Optional[str] = None


class EventRequestDecision(BaseModel):
    status: RequestStatus


class EventRequestResponse(BaseModel):
    id: int
    requested_by_user_id: int
    name: str
    location: Optional[str]
    start_date: date
    end_date: date
    requested_gear: Optional[str]
    notes: Optional[str]
    status: RequestStatus
    decided_by_user_id: Optional[int]
    decided_at: Optional[datetime]
    event_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}
