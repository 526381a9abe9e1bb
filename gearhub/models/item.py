"""
Inventory item: a single physical unit of equipment.

Items are owned by the inventory directory. The reservation core reads
them (existence and summary fields for listings) but never writes them;
`status` only changes through the warehouse scan workflow.
"""

import enum

from sqlalchemy import Column, Integer, String, Date, Numeric, CheckConstraint

from gearhub.db.base import Base, TimestampMixin


class ItemStatus(str, enum.Enum):
    IN_STORAGE = "in_storage"
    IN_TRANSIT = "in_transit"
    IN_USE = "in_use"
    IN_REPAIR = "in_repair"
    RETIRED = "retired"


class Item(Base, TimestampMixin):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    unique_identifier = Column(String(100), unique=True, index=True, nullable=False)
    status = Column(String(20), nullable=False, default=ItemStatus.IN_STORAGE.value)
    location = Column(String(255), nullable=True)
    purchase_cost = Column(Numeric(12, 2), nullable=True)
    purchase_date = Column(Date, nullable=True)
    region = Column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_storage', 'in_transit', 'in_use', 'in_repair', 'retired')",
            name="check_item_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, code={self.unique_identifier}, status={self.status})>"
