"""
Item directory lookups used by the reservation core.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gearhub.core.errors import NotFound
from gearhub.core.logging import get_logger
from gearhub.models.item import Item, ItemStatus

logger = get_logger(__name__)


async def get_item(db: AsyncSession, item_id: int) -> Item:
    result = await db.execute(select(Item).where(Item.id == item_id))
    item = result.scalar_one_or_none()
    if not item:
        raise NotFound("Item", item_id)
    return item


async def item_exists(db: AsyncSession, item_id: int) -> bool:
    result = await db.execute(select(Item.id).where(Item.id == item_id))
    return result.scalar_one_or_none() is not None


async def create_item(
    db: AsyncSession,
    name: str,
    unique_identifier: str,
    category: Optional[str] = None,
    location: Optional[str] = None,
    region: Optional[str] = None,
    purchase_cost: Optional[Decimal] = None,
    purchase_date: Optional[date] = None,
) -> Item:
    """Register an item in storage. Used for seeding; inventory management lives elsewhere."""
    item = Item(
        name=name,
        unique_identifier=unique_identifier,
        category=category,
        location=location,
        region=region,
        purchase_cost=purchase_cost,
        purchase_date=purchase_date,
        status=ItemStatus.IN_STORAGE.value,
    )
    db.add(item)
    await db.flush()
    await db.refresh(item)
    await db.commit()

    logger.info("item_created", item_id=item.id, unique_identifier=unique_identifier)
    return item
