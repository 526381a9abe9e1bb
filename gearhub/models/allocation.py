"""
Allocation model: physical fulfillment of an item assigned to an event.

Key design decisions:
- `status` moves forward only: Allocated -> Picked Up -> Returned
- Partial unique index allows one active (non-Returned) allocation per
  (item, event); returned allocations stay as history
- Per-transition timestamps are kept alongside `status_changed_at`
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint, text

from gearhub.db.base import Base, TimestampMixin


class AllocationStatus(str, enum.Enum):
    ALLOCATED = "Allocated"
    PICKED_UP = "Picked Up"
    RETURNED = "Returned"

    def next_status(self) -> "AllocationStatus | None":
        order = list(AllocationStatus)
        position = order.index(self)
        if position + 1 < len(order):
            return order[position + 1]
        return None

    @property
    def is_terminal(self) -> bool:
        return self is AllocationStatus.RETURNED


ACTIVE_ALLOCATION_CLAUSE = text("status <> 'Returned'")


class Allocation(Base, TimestampMixin):
    __tablename__ = "allocations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    pickup_location = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=AllocationStatus.ALLOCATED.value)
    allocated_by_user_id = Column(Integer, nullable=True)
    status_changed_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    returned_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Allocated', 'Picked Up', 'Returned')",
            name="check_allocation_status",
        ),
        Index(
            "uq_active_allocation_item_event",
            "item_id",
            "event_id",
            unique=True,
            postgresql_where=ACTIVE_ALLOCATION_CLAUSE,
            sqlite_where=ACTIVE_ALLOCATION_CLAUSE,
        ),
    )

    def __repr__(self) -> str:
        return f"<Allocation(id={self.id}, item={self.item_id}, event={self.event_id}, status={self.status})>"
