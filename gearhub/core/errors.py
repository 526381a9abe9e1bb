"""
Typed errors raised by the reservation core.

Services raise these instead of transport exceptions; the API layer maps
them to HTTP responses using `status_code` and `code`.
"""

from fastapi import status


class GearhubError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRange(GearhubError):
    status_code = 422  # Unprocessable Content
    code = "invalid_range"


class NotFound(GearhubError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, entity: str, identifier):
        super().__init__(f"{entity} {identifier} not found")
        self.entity = entity
        self.identifier = identifier


class ConflictingReservation(GearhubError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflicting_reservation"

    def __init__(self, item_id: int, event_id: int, conflicting_event_ids: list[int]):
        super().__init__(
            f"Item {item_id} is already reserved for an overlapping event "
            f"(events: {', '.join(str(e) for e in conflicting_event_ids)})"
        )
        self.item_id = item_id
        self.event_id = event_id
        self.conflicting_event_ids = conflicting_event_ids


class AlreadyAllocated(GearhubError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_allocated"


class InvalidTransition(GearhubError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class AlreadyDecided(InvalidTransition):
    code = "already_decided"


class StoreUnavailable(GearhubError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store_unavailable"
