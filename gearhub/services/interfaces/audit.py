"""
Audit sink interface.
Lets the core record who did what without depending on where it is stored.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class AuditSink(ABC):
    """
    Interface for audit trail writers.

    Implementations:
    - DatabaseAuditSink: one audit_logs row per record, own session
    - NullAuditSink: discards records
    """

    @abstractmethod
    async def record(self, actor_id: Optional[int], action: str, details: dict[str, Any]) -> None:
        """
        Write one audit record.

        Args:
            actor_id: User who performed the action, if known
            action: snake_case action name, e.g. "booking_created"
            details: JSON-serializable context for the action

        Implementations may raise; callers go through emit_audit, which
        logs and discards failures.
        """
        pass
