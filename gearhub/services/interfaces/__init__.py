"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .audit import AuditSink
from .null_audit import NullAuditSink

__all__ = ['AuditSink', 'NullAuditSink']
