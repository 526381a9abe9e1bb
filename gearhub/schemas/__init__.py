from gearhub.schemas.event import EventCreate, EventUpdate, EventResponse
from gearhub.schemas.reservation import ReservationCreate, ReservationResponse, ReservationDetail
from gearhub.schemas.allocation import (
    AllocationCreate, BulkAllocationCreate, AllocationStatusUpdate,
    AllocationLocationUpdate, AllocationResponse, AllocationDetail,
)
from gearhub.schemas.event_request import EventRequestCreate, EventRequestDecision, EventRequestResponse

__all__ = [
    "EventCreate", "EventUpdate", "EventResponse",
    "ReservationCreate", "ReservationResponse", "ReservationDetail",
    "AllocationCreate", "BulkAllocationCreate", "AllocationStatusUpdate",
    "AllocationLocationUpdate", "AllocationResponse", "AllocationDetail",
    "EventRequestCreate", "EventRequestDecision", "EventRequestResponse",
]
