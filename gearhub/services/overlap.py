"""
Closed-interval overlap checks between an item's reservations.

Two day ranges [s1, e1] and [s2, e2] overlap iff s1 <= e2 AND s2 <= e1.
Both endpoints are inclusive, so ranges that share only a boundary day
overlap: an item used on the last day of one event cannot be handed to an
event starting that same day.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import InvalidRange
from gearhub.models.event import Event
from gearhub.models.reservation import Reservation


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidRange("Date range needs both a start and an end date")
        if self.start > self.end:
            raise InvalidRange(
                f"Invalid date range: start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end

    @classmethod
    def of_event(cls, event: Event) -> "DateRange":
        return cls(event.start_date, event.end_date)


def _conflict_query(item_id: int, candidate: DateRange, exclude_reservation_id: Optional[int]):
    query = (
        select(Reservation.id, Reservation.event_id)
        .join(Event, Event.id == Reservation.event_id)
        .where(
            Reservation.item_id == item_id,
            Event.start_date <= candidate.end,
            Event.end_date >= candidate.start,
        )
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)
    return query


async def find_conflicting_reservations(
    db: AsyncSession,
    item_id: int,
    candidate: DateRange,
    exclude_reservation_id: Optional[int] = None,
) -> list[tuple[int, int]]:
    """Return (reservation_id, event_id) pairs overlapping the candidate range."""
    result = await db.execute(
        _conflict_query(item_id, candidate, exclude_reservation_id).order_by(Reservation.id)
    )
    return [(row.id, row.event_id) for row in result.all()]


async def conflicts(
    db: AsyncSession,
    item_id: int,
    candidate: DateRange,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    """
    True if the item already has a reservation whose event overlaps `candidate`.

    Reservations pointing at deleted events have no range and never conflict.
    """
    result = await db.execute(
        _conflict_query(item_id, candidate, exclude_reservation_id).limit(1)
    )
    return result.first() is not None
