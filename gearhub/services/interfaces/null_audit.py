"""
Audit sink that records nothing.
"""

from typing import Any, Optional

from gearhub.services.interfaces.audit import AuditSink


class NullAuditSink(AuditSink):
    """
    Discards every record.

    Use when:
    - AUDIT_SINK=null (load tests, local experiments)
    """

    async def record(self, actor_id: Optional[int], action: str, details: dict[str, Any]) -> None:
        pass
