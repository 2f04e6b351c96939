"""
Activity logging for applied inventory changes.
"""
from typing import Optional
from sqlalchemy.orm import Session
from . import models


def log_inventory_activity(
    db: Session,
    user_id: str,
    action: str,
    item: models.InventoryItem,
    old_quantity: Optional[int] = None
) -> models.ActivityLog:
    """
    Record one applied increment/decrement in the activity log.
    
    The entry is added to the current transaction and committed with the change
    it describes.
    
    Args:
        db: Database session
        user_id: User who made the change
        action: "increment" or "decrement"
        item: Record after the change
        old_quantity: Quantity before the change (None when the record is new)
    """
    if old_quantity is None:
        description = f"Created {item.product} ({item.barcode}) in zone {item.zone} with quantity {item.quantity}"
    else:
        description = f"{action.capitalize()}ed {item.product} ({item.barcode}) in zone {item.zone}: {old_quantity} -> {item.quantity}"
    
    event = models.ActivityLog(
        user_id=user_id,
        action_type=f"inventory_{action}",
        barcode=item.barcode,
        zone=item.zone,
        description=description,
        old_quantity=old_quantity,
        new_quantity=item.quantity
    )
    db.add(event)
    return event
