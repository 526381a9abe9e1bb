"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_date: date
    end_date: date
    status: str = Field("Planning", min_length=1, max_length=50)


class EventUpdate(BaseModel):
    """Partial update: only fields present in the request are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = Field(None, min_length=1, max_length=50)


class EventResponse(BaseModel):
    id: int
    name: str
    location: Optional[str]
    start_date: date
    end_date: date
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EventDeleteResponse(BaseModel):
    message: str
    event_id: int
