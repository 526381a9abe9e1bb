"""
Event request: a proposal that becomes an Event when approved.

Pending is the only non-terminal status. Approval links the promoted
event through `event_id`.
"""

import enum

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, CheckConstraint

from gearhub.db.base import Base, TimestampMixin


class RequestStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"


class EventRequest(Base, TimestampMixin):
    __tablename__ = "event_requests"

    id = Column(Integer, primary_key=True, index=True)
    requested_by_user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    requested_gear = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    decided_by_user_id = Column(Integer, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    event_id = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="check_event_request_range"),
        CheckConstraint(
            "status IN ('Pending', 'Approved', 'Denied')",
            name="check_event_request_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<EventRequest(id={self.id}, name={self.name}, status={self.status})>"
