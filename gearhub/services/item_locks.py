"""
Per-item locking for check-then-write sequences.

CONCURRENCY STRATEGY: Two lock layers keyed by item id
=======================================================

Problem:
  Two requests reserve the same item for overlapping events at the same time.
  Both run the conflict query, both see no conflict, both insert.
  Result: the item is promised twice.

Solution:
  The conflict check and the insert run while holding a lock keyed by the
  item id, and the lock is held until the transaction has committed.

  1. In-process: an asyncio.Lock per item id serializes handlers inside one
     worker process. Locks live in a WeakValueDictionary, so idle items
     cost nothing.
  2. Cross-process (PostgreSQL): pg_advisory_xact_lock(namespace, item_id)
     taken as the first statement of the transaction. Postgres releases it
     at COMMIT/ROLLBACK, so it covers exactly the check-and-insert.

  The transaction runs at READ COMMITTED. Each statement takes a fresh
  snapshot, so the conflict query that follows the lock sees rows committed
  by the previous lock holder. (Under REPEATABLE READ the snapshot would be
  taken by the lock statement itself, before the wait, and the previous
  holder's insert would be invisible.)

  Requests for different items never wait on each other.

  SQLite has no advisory locks. There the asyncio lock is the only guard,
  so a SQLite deployment must run a single worker process.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.config import get_settings
from gearhub.core.logging import get_logger

logger = get_logger(__name__)

RESERVATION_LOCK_NAMESPACE = 7001


class KeyedLocks:
    """asyncio locks created on demand per key and dropped once unused."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, key: int) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


_item_locks = KeyedLocks()


@asynccontextmanager
async def item_lock(item_id: int) -> AsyncIterator[None]:
    lock = _item_locks.get(item_id)
    async with lock:
        yield


def uses_advisory_locks(db: AsyncSession) -> bool:
    if not get_settings().ADVISORY_LOCKS_ENABLED:
        return False
    return db.get_bind().dialect.name == "postgresql"


async def acquire_advisory_lock(db: AsyncSession, namespace: int, key: int) -> None:
    """Take a transaction-scoped advisory lock; no-op on other dialects."""
    if not uses_advisory_locks(db):
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(:namespace, :key)"),
        {"namespace": namespace, "key": key},
    )
    logger.debug("advisory_lock_acquired", namespace=namespace, key=key)
