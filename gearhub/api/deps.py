"""
Shared FastAPI dependencies.

The acting user is identified by the X-Actor-Id header, set by the gateway
that terminates authentication in front of this service.
"""

from fastapi import Header, HTTPException, status

from gearhub.services.audit_service import get_audit_sink
from gearhub.services.interfaces.audit import AuditSink

ACTOR_HEADER = "X-Actor-Id"


async def get_current_user_id(x_actor_id: int | None = Header(default=None)) -> int:
    if x_actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {ACTOR_HEADER} header",
        )
    return x_actor_id


def get_audit() -> AuditSink:
    return get_audit_sink()
