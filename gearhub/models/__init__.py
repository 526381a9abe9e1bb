from gearhub.models.item import Item, ItemStatus
from gearhub.models.event import Event
from gearhub.models.reservation import Reservation
from gearhub.models.allocation import Allocation, AllocationStatus
from gearhub.models.event_request import EventRequest, RequestStatus
from gearhub.models.audit_log import AuditLog

__all__ = [
    "Item", "ItemStatus",
    "Event",
    "Reservation",
    "Allocation", "AllocationStatus",
    "EventRequest", "RequestStatus",
    "AuditLog",
]
