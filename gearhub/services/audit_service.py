"""
Audit trail service.

Fire-and-forget semantics:
  Audit records are written after the primary change has committed.
  A failing sink never fails or rolls back the operation that triggered it;
  the failure is logged and counted instead.

  Tradeoff: an audit row can be missing for a change that did happen.
  This is acceptable because the primary data stays authoritative and
  audit_write_failures_total makes the gap visible.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gearhub.core.config import get_settings
from gearhub.core.logging import get_logger
from gearhub.core.metrics import audit_failures
from gearhub.models.audit_log import AuditLog
from gearhub.services.interfaces.audit import AuditSink
from gearhub.services.interfaces.null_audit import NullAuditSink

logger = get_logger(__name__)


class DatabaseAuditSink(AuditSink):
    """Writes each record to audit_logs in a session of its own."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(self, actor_id: Optional[int], action: str, details: dict[str, Any]) -> None:
        async with self.session_factory() as session:
            session.add(AuditLog(user_id=actor_id, action=action, details=details))
            await session.commit()


async def emit_audit(
    sink: AuditSink,
    actor_id: Optional[int],
    action: str,
    details: dict[str, Any],
) -> None:
    """Record an audit event; errors are logged and discarded."""
    try:
        await sink.record(actor_id, action, details)
    except Exception as e:
        audit_failures.inc()
        logger.error(
            "audit_write_failed",
            action=action,
            actor_id=actor_id,
            error=str(e),
        )


def build_audit_sink() -> AuditSink:
    """
    Build the configured audit sink.

    AUDIT_SINK selects the implementation:
    - "database": DatabaseAuditSink on the application session factory
    - "null": NullAuditSink
    """
    sink = get_settings().AUDIT_SINK

    if sink == "null":
        return NullAuditSink()

    from gearhub.db.session import SessionLocal

    return DatabaseAuditSink(SessionLocal)


# Singleton instance
_sink: Optional[AuditSink] = None


def get_audit_sink() -> AuditSink:
    """Get audit sink singleton."""
    global _sink
    if _sink is None:
        _sink = build_audit_sink()
    return _sink
