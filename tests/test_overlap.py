"""
Tests for closed-interval overlap detection.
"""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import InvalidRange
from gearhub.models.reservation import Reservation
from gearhub.services.overlap import DateRange, conflicts, find_conflicting_reservations

from conftest import ACTOR_ID, add_event, add_item


def test_inverted_range_rejected():
    with pytest.raises(InvalidRange):
        DateRange(date(2024, 1, 10), date(2024, 1, 5))


def test_single_day_range_allowed():
    day = DateRange(date(2024, 1, 5), date(2024, 1, 5))
    assert day.overlaps(day)


@pytest.mark.parametrize(
    "other, expected",
    [
        (DateRange(date(2024, 1, 5), date(2024, 1, 10)), True),   # shared boundary day
        (DateRange(date(2024, 1, 6), date(2024, 1, 10)), False),  # starts the day after
        (DateRange(date(2023, 12, 28), date(2024, 1, 1)), True),  # ends on first day
        (DateRange(date(2024, 1, 2), date(2024, 1, 3)), True),    # contained
        (DateRange(date(2023, 12, 1), date(2024, 2, 1)), True),   # contains
        (DateRange(date(2023, 12, 1), date(2023, 12, 31)), False),
    ],
)
def test_overlaps_closed_interval(other, expected):
    event_a = DateRange(date(2024, 1, 1), date(2024, 1, 5))
    assert event_a.overlaps(other) is expected
    assert other.overlaps(event_a) is expected


async def _reserve(session: AsyncSession, item_id: int, event_id: int) -> Reservation:
    reservation = Reservation(item_id=item_id, event_id=event_id, created_by_user_id=ACTOR_ID)
    session.add(reservation)
    await session.commit()
    await session.refresh(reservation)
    return reservation


@pytest.mark.asyncio
async def test_conflicts_on_shared_boundary_day(db_session: AsyncSession):
    """Event A [01-01, 01-05] and event B [01-05, 01-10] conflict."""
    item = await add_item(db_session, "CAM-001", name="Camera")
    event_a = await add_event(db_session, "A", date(2024, 1, 1), date(2024, 1, 5))
    await _reserve(db_session, item.id, event_a.id)

    assert await conflicts(db_session, item.id, DateRange(date(2024, 1, 5), date(2024, 1, 10)))
    assert not await conflicts(db_session, item.id, DateRange(date(2024, 1, 6), date(2024, 1, 10)))


@pytest.mark.asyncio
async def test_conflicts_scoped_to_item(db_session: AsyncSession):
    item = await add_item(db_session, "CAM-001")
    other_item = await add_item(db_session, "CAM-002")
    event = await add_event(db_session, "A", date(2024, 1, 1), date(2024, 1, 5))
    await _reserve(db_session, item.id, event.id)

    assert not await conflicts(db_session, other_item.id, DateRange(date(2024, 1, 1), date(2024, 1, 5)))


@pytest.mark.asyncio
async def test_exclude_reservation_ignores_own_row(db_session: AsyncSession):
    item = await add_item(db_session, "CAM-001")
    event = await add_event(db_session, "A", date(2024, 1, 1), date(2024, 1, 5))
    reservation = await _reserve(db_session, item.id, event.id)

    candidate = DateRange(date(2024, 1, 2), date(2024, 1, 6))
    assert await conflicts(db_session, item.id, candidate)
    assert not await conflicts(db_session, item.id, candidate, exclude_reservation_id=reservation.id)


@pytest.mark.asyncio
async def test_find_conflicting_reservations_lists_events(db_session: AsyncSession):
    item = await add_item(db_session, "CAM-001")
    first = await add_event(db_session, "A", date(2024, 6, 1), date(2024, 6, 3))
    second = await add_event(db_session, "B", date(2024, 6, 4), date(2024, 6, 6))
    await _reserve(db_session, item.id, first.id)
    await _reserve(db_session, item.id, second.id)

    clashes = await find_conflicting_reservations(db_session, item.id, DateRange(date(2024, 6, 3), date(2024, 6, 4)))
    assert [event_id for _, event_id in clashes] == [first.id, second.id]
