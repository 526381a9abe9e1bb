"""
Tests for the transaction runner's retry and rollback behaviour.
"""

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from gearhub.core.errors import ConflictingReservation, StoreUnavailable
from gearhub.db.transaction import is_transient, run_in_transaction
from gearhub.models import Item, ItemStatus
from gearhub.services.item_service import get_item


class SerializationFailure(Exception):
    sqlstate = "40001"


def _locked() -> OperationalError:
    return OperationalError("UPDATE allocations ...", {}, Exception("database is locked"))


def _new_item(code: str) -> Item:
    return Item(name="Projector", unique_identifier=code, status=ItemStatus.IN_STORAGE.value)


async def _item_count(session) -> int:
    return (await session.execute(select(func.count()).select_from(Item))).scalar()


def test_transient_classification():
    assert is_transient(_locked())
    assert is_transient(DBAPIError("SELECT 1", {}, SerializationFailure()))
    assert is_transient(DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True))
    assert not is_transient(IntegrityError("INSERT ...", {}, Exception("duplicate key")))
    assert not is_transient(ValueError("not a store error"))


@pytest.mark.asyncio
async def test_transient_error_retried_once(db_session):
    calls = []

    async def work():
        calls.append(len(calls))
        db_session.add(_new_item(f"PRJ-{len(calls)}"))
        await db_session.flush()
        if len(calls) == 1:
            raise _locked()
        return "done"

    assert await run_in_transaction(db_session, work, operation="test_retry", attempts=2) == "done"
    assert len(calls) == 2
    # the first attempt's insert was rolled back
    assert await _item_count(db_session) == 1


@pytest.mark.asyncio
async def test_persistent_transient_error_surfaces_as_store_unavailable(db_session):
    calls = []

    async def work():
        calls.append(1)
        db_session.add(_new_item(f"PRJ-{len(calls)}"))
        await db_session.flush()
        raise _locked()

    with pytest.raises(StoreUnavailable):
        await run_in_transaction(db_session, work, operation="test_unavailable", attempts=2)

    assert len(calls) == 2
    assert await _item_count(db_session) == 0


@pytest.mark.asyncio
async def test_non_transient_store_error_not_retried(db_session):
    calls = []

    async def work():
        calls.append(1)
        raise IntegrityError("INSERT ...", {}, Exception("duplicate key"))

    with pytest.raises(IntegrityError):
        await run_in_transaction(db_session, work, operation="test_integrity", attempts=2)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_domain_error_rolls_back_without_retry(db_session):
    calls = []

    async def work():
        calls.append(1)
        db_session.add(_new_item("PRJ-1"))
        await db_session.flush()
        raise ConflictingReservation(1, 2, [3])

    with pytest.raises(ConflictingReservation):
        await run_in_transaction(db_session, work, operation="test_domain", attempts=2)

    assert len(calls) == 1
    assert await _item_count(db_session) == 0


@pytest.mark.asyncio
async def test_rejected_work_expires_loaded_rows(db_session):
    """After a rollback, rows loaded in the session must be fetched again."""
    db_session.add(_new_item("PRJ-1"))
    await db_session.commit()
    item = (await db_session.execute(select(Item).where(Item.unique_identifier == "PRJ-1"))).scalar_one()
    item_id = item.id

    async def work():
        raise ConflictingReservation(item_id, 2, [3])

    with pytest.raises(ConflictingReservation):
        await run_in_transaction(db_session, work, operation="test_expiry", attempts=2)

    assert "name" in inspect(item).expired_attributes

    refetched = await get_item(db_session, item_id)
    assert refetched.name == "Projector"
