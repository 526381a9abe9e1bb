"""
Transaction runner with a single retry on transient store errors.

RETRY POLICY
============

A unit of work is an async callable that issues statements on the session
and returns a result. The runner commits it, or rolls it back on any error.

  - Domain errors (conflicts, invalid transitions, missing rows) are raised
    as-is after rollback. Retrying them would only repeat the same answer.
  - Transient store errors (dropped connection, serialization failure,
    deadlock, SQLite "database is locked") roll back and run the unit of work
    again with the same inputs. After STORE_RETRY_ATTEMPTS attempts the error
    surfaces as StoreUnavailable.

The commit is shielded from cancellation: a caller that gives up while the
commit is in flight does not interrupt it, so the effect is either fully
applied or not applied at all.

A rejected unit of work rolls the session back, and rollback expires every
ORM object loaded through that session. Callers that keep using such objects
after a failed call must re-fetch them (or hold on to plain ids) instead of
reading attributes, which would trigger a lazy load outside the async context.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.config import get_settings
from gearhub.core.errors import StoreUnavailable
from gearhub.core.logging import get_logger
from gearhub.core.metrics import db_retries, record_db_operation

logger = get_logger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = {"40001", "40P01"}


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


async def _commit(db: AsyncSession) -> None:
    commit = asyncio.ensure_future(db.commit())
    try:
        await asyncio.shield(commit)
    except asyncio.CancelledError:
        # the caller went away; the commit still runs to completion before we unwind
        await asyncio.wait({commit})
        if not commit.cancelled():
            commit.exception()
        raise


def is_transient(exc: BaseException) -> bool:
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    if _sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    return isinstance(exc, OperationalError)


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    operation: str,
    attempts: int | None = None,
) -> T:
    max_attempts = attempts or get_settings().STORE_RETRY_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        try:
            result = await work()
            await _commit(db)
            record_db_operation("commit")
            return result
        except DBAPIError as exc:
            await db.rollback()
            record_db_operation("rollback")
            if not is_transient(exc):
                raise
            if attempt == max_attempts:
                logger.error(
                    "store_unavailable",
                    operation=operation,
                    attempts=attempt,
                    error=str(exc.orig),
                )
                raise StoreUnavailable(
                    f"{operation} failed after {attempt} attempts: store unavailable"
                ) from exc
            db_retries.inc()
            record_db_operation("retry")
            logger.warning(
                "store_retry",
                operation=operation,
                attempt=attempt,
                error=str(exc.orig),
            )
        except BaseException:
            await db.rollback()
            record_db_operation("rollback")
            raise

    # Should not reach here, but just in case
    raise StoreUnavailable(f"{operation} failed: store unavailable")
