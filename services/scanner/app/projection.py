"""
Local inventory projection.

Folds queued scans into a per-barcode quantity so the operator gets immediate
feedback while offline. It is a cache only: nothing here is ever sent to the
server, only the queued mutations are replayed.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import models, schemas

logger = logging.getLogger(__name__)


async def apply_mutation(db: AsyncSession, scan: schemas.ScanCreate) -> schemas.LocalInventoryRecord:
    """
    Fold one scan into the projection.
    
    A new barcode starts at 1 for an increment and 0 for a decrement. For a
    known barcode only quantity and last_modified change, the stored product
    details are kept.
    
    Args:
        db: Local database session
        scan: The scan being applied
        
    Returns:
        The updated local record
    """
    item = await db.get(models.OfflineInventoryItem, scan.barcode)
    now = datetime.utcnow()
    
    if item is None:
        item = models.OfflineInventoryItem(
            barcode=scan.barcode,
            product=scan.product_data.product,
            colour=scan.product_data.colour or None,
            size=scan.product_data.size or None,
            quantity=1 if scan.action == "increment" else 0,
            zone=scan.zone or None,
            last_modified=now
        )
        db.add(item)
        logger.info(f"Created local record for barcode {scan.barcode} with quantity {item.quantity}")
    else:
        old_quantity = item.quantity
        if scan.action == "increment":
            item.quantity = item.quantity + 1
        else:
            item.quantity = max(0, item.quantity - 1)
        item.last_modified = now
        logger.info(f"Updated local record for barcode {scan.barcode}: {old_quantity} -> {item.quantity}")
    
    await db.commit()
    return schemas.LocalInventoryRecord.model_validate(item)


async def get(db: AsyncSession, barcode: str) -> Optional[schemas.LocalInventoryRecord]:
    """Local record for a barcode, or None."""
    item = await db.get(models.OfflineInventoryItem, barcode)
    if item is None:
        return None
    return schemas.LocalInventoryRecord.model_validate(item)


async def list_items(db: AsyncSession) -> List[schemas.LocalInventoryRecord]:
    """All local records, most recently modified first."""
    result = await db.execute(
        select(models.OfflineInventoryItem).order_by(models.OfflineInventoryItem.last_modified.desc())
    )
    return [schemas.LocalInventoryRecord.model_validate(row) for row in result.scalars()]


async def clear(db: AsyncSession) -> None:
    """Drop the whole projection."""
    result = await db.execute(delete(models.OfflineInventoryItem))
    await db.commit()
    logger.info(f"Cleared {result.rowcount} local records")
