"""
Reservation model: an item committed to an event.

Key design decisions:
- The no-overlap invariant spans two tables (reservation -> event dates), so
  it cannot be a plain constraint; reservation_service enforces it under a
  per-item lock
- `event_id` carries no foreign key: event deletion does not cascade and
  existing reservations are left referencing the removed event
- Rows are never updated; a reservation is created or deleted
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, func

from gearhub.db.base import Base


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    created_by_user_id = Column(Integer, nullable=False)
    assigned_by_user_id = Column(Integer, nullable=True)
    condition_note = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_reservations_item_event", "item_id", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, item={self.item_id}, event={self.event_id})>"
