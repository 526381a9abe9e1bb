"""
Event model: a named activity over a closed day range.

Key design decisions:
- `start_date`/`end_date` are DATE columns; both endpoints are inclusive
- CHECK constraint keeps the range well-formed at the DB level
- Composite index on (start_date, end_date) backs the overlap query
- No relationship cascades: deleting an event leaves reservations and
  allocations pointing at it
"""

from sqlalchemy import Column, Integer, String, Date, Index, CheckConstraint

from gearhub.db.base import Base, TimestampMixin

DEFAULT_EVENT_STATUS = "Planning"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(50), nullable=False, default=DEFAULT_EVENT_STATUS)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="check_event_range"),
        Index("ix_events_range", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, {self.start_date}..{self.end_date})>"
