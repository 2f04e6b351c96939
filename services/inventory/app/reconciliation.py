"""
Zone-aware reconciliation of scanner mutations against the canonical store.

A barcode identifies a product and a zone identifies where a batch of that
product sits, so one barcode can own several records (one per zone). Each
request applies exactly one increment or decrement to the record for the
requested zone:

- no record for the barcode yet: create one in the zone
- a record already in the zone: adjust its quantity
- records only in other zones: create one in the zone, inheriting the product
  metadata already known for the barcode

Quantities never go below zero.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import activity, crud, models, schemas
from .config import DEFAULT_ZONE, DEFAULT_LOW_STOCK_THRESHOLD, SYNTHETIC_PRODUCT_PREFIX

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("increment", "decrement")


class ReconciliationError(Exception):
    """Reconciliation could not be completed; nothing was written."""
    code = "SYNC_INVENTORY_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReconciliationValidationError(ReconciliationError):
    """Malformed request. Never worth retrying."""
    code = "VALIDATION_ERROR"
    status_code = 400


@dataclass
class ReconcileResult:
    item: models.InventoryItem
    is_new_item: bool
    replayed: bool = False


def resolve_target_zone(zone: Optional[str]) -> str:
    """Trimmed zone name, or the default zone when none was given."""
    if zone and zone.strip():
        return zone.strip()
    return DEFAULT_ZONE


def is_synthetic_product(name: Optional[str]) -> bool:
    """True for blank names and names generated from the barcode."""
    return not name or not name.strip() or name.startswith(SYNTHETIC_PRODUCT_PREFIX)


def pick_product_source(existing: List[models.InventoryItem]) -> Optional[models.InventoryItem]:
    """
    Choose the record whose product metadata a new zone record should inherit.
    
    Prefers the first record with a real product name, then the first record.
    """
    for item in existing:
        if not is_synthetic_product(item.product):
            return item
    return existing[0] if existing else None


def validate_request(request: schemas.SyncRequest) -> tuple:
    """
    Check action and barcode.
    
    Returns:
        Tuple of (action, stripped barcode)
        
    Raises:
        ReconciliationValidationError: if either is missing or malformed
    """
    if not request.action or not request.barcode or not request.barcode.strip():
        raise ReconciliationValidationError("Action and barcode are required")
    if request.action not in VALID_ACTIONS:
        raise ReconciliationValidationError("Action must be increment or decrement")
    return request.action, request.barcode.strip()


def reconcile(db: Session, user_id: str, request: schemas.SyncRequest) -> ReconcileResult:
    """
    Apply one increment/decrement for a user and return the resulting record.
    
    Args:
        db: Database session
        user_id: Verified id of the requesting user
        request: Action, barcode, optional zone, product data and mutation id
        
    Returns:
        ReconcileResult with the committed record and whether it was created
        
    Raises:
        ReconciliationValidationError: malformed action or barcode
        ReconciliationError: the canonical store could not be read or written
    """
    action, barcode = validate_request(request)
    product_data = request.product_data or schemas.ProductData()
    target_zone = resolve_target_zone(request.zone)
    
    logger.info(f"Processing {action} for barcode: {barcode}, user: {user_id}, zone: {request.zone or 'none'}")
    logger.info(f"Target zone: {target_zone}")
    
    try:
        if request.mutation_id:
            applied = crud.get_applied_mutation(db, user_id, request.mutation_id)
            if applied is not None:
                item = crud.get_inventory_item(db, applied.item_id)
                if item is not None:
                    logger.info(f"Mutation {request.mutation_id} already applied to item {item.id}, skipping")
                    return ReconcileResult(item=item, is_new_item=False, replayed=True)
                logger.warning(f"Mutation {request.mutation_id} points at missing item {applied.item_id}, applying again")
        
        try:
            result = _apply(db, user_id, action, barcode, target_zone, product_data)
        except IntegrityError:
            # Another request created the (barcode, zone) record first
            db.rollback()
            logger.warning(f"Concurrent create for barcode {barcode} in zone {target_zone}, retrying as update")
            result = _apply(db, user_id, action, barcode, target_zone, product_data)
        
        if request.mutation_id:
            crud.record_applied_mutation(db, user_id, request.mutation_id, result.item.id)
        
        db.commit()
        db.refresh(result.item)
        return result
    except ReconciliationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Sync inventory error for barcode {barcode}: {e}")
        raise ReconciliationError(f"Failed to sync inventory: {e}") from e


def _apply(
    db: Session,
    user_id: str,
    action: str,
    barcode: str,
    target_zone: str,
    product_data: schemas.ProductData
) -> ReconcileResult:
    existing = crud.get_items_for_barcode(db, user_id, barcode)
    logger.info(f"Found {len(existing)} existing items for barcode: {barcode}")
    
    in_zone = next((item for item in existing if (item.zone or "") == target_zone), None)
    if in_zone is not None:
        old_quantity = in_zone.quantity
        item = crud.adjust_quantity(db, in_zone.id, action)
        if item is None:
            raise ReconciliationError(f"Failed to sync inventory: item {in_zone.id} was removed during update")
        activity.log_inventory_activity(db, user_id, action, item, old_quantity=old_quantity)
        logger.info(f"Updated item {item.id} in zone {target_zone}: {old_quantity} -> {item.quantity}")
        return ReconcileResult(item=item, is_new_item=False)
    
    source = pick_product_source(existing)
    if source is not None:
        logger.info(f"Creating item in zone {target_zone} from product info of item {source.id}")
        product = source.product or product_data.product
        colour = source.colour or product_data.colour
        size = source.size or product_data.size
    else:
        logger.info(f"Creating new item for barcode: {barcode} in zone: {target_zone}")
        product, colour, size = product_data.product, product_data.colour, product_data.size
    
    item = crud.create_inventory_item(db, {
        "user_id": user_id,
        "barcode": barcode,
        "product": product or f"{SYNTHETIC_PRODUCT_PREFIX}{barcode}",
        "colour": colour or "",
        "size": size or "",
        "zone": target_zone,
        "quantity": 1 if action == "increment" else 0,
        "low_stock_threshold": DEFAULT_LOW_STOCK_THRESHOLD,
    })
    activity.log_inventory_activity(db, user_id, action, item)
    return ReconcileResult(item=item, is_new_item=True)
