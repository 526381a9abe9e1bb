"""
Pydantic schemas for allocation request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from gearhub.models.allocation import AllocationStatus


class AllocationCreate(BaseModel):
    item_id: int
    pickup_location: Optional[str] = Field(None, max_length=255)


class BulkAllocationCreate(BaseModel):
    items: list[AllocationCreate] = Field(..., min_length=1)


class AllocationStatusUpdate(BaseModel):
    status: AllocationStatus


class AllocationLocationUpdate(BaseModel):
    pickup_location: str = Field(..., max_length=255)


class AllocationResponse(BaseModel):
    id: int
    event_id: int
    item_id: int
    pickup_location: Optional[str]
    status: AllocationStatus
    allocated_by_user_id: Optional[int]
    status_changed_at: Optional[datetime]
    picked_up_at: Optional[datetime]
    returned_at: Optional[datetime]

    model_config = {"from_attributes": True}


class AllocationDetail(BaseModel):
    id: int
    event_id: int
    item_id: int
    item_name: str
    item_category: Optional[str]
    unique_identifier: str
    pickup_location: Optional[str]
    status: AllocationStatus
    status_changed_at: Optional[datetime]

    model_config = {"from_attributes": True}
