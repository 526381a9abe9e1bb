"""
Pydantic schemas for reservation request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class ReservationCreate(BaseModel):
    item_id: int
    event_id: int
    condition_note: Optional[str] = Field(None, max_length=1000)
    assigned_by_user_id: Optional[int] = None


class ReservationResponse(BaseModel):
    id: int
    item_id: int
    event_id: int
    created_by_user_id: int
    assigned_by_user_id: Optional[int]
    condition_note: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ReservationDetail(BaseModel):
    """Reservation joined with the item summary and the event's range."""

    id: int
    item_id: int
    event_id: int
    item_name: str
    item_category: Optional[str]
    unique_identifier: str
    event_name: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    created_by_user_id: int
    condition_note: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ReservationDeleteResponse(BaseModel):
    message: str
    reservation_id: int
