"""
CRUD (Create, Read, Update, Delete) operations for the Inventory service.

This module contains all database operations on the canonical inventory
records. Write helpers only flush; the caller owns the transaction.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import case, update
from sqlalchemy.orm import Session
from . import models

def get_inventory_item(db: Session, item_id: int, user_id: Optional[str] = None) -> Optional[models.InventoryItem]:
    """
    Retrieve a single inventory item by ID.
    
    Args:
        db: Database session
        item_id: ID of the inventory item to retrieve
        user_id: When given, only return the item if it belongs to this user
        
    Returns:
        InventoryItem object or None if not found
    """
    query = db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id)
    if user_id is not None:
        query = query.filter(models.InventoryItem.user_id == user_id)
    return query.first()

def get_items_for_barcode(db: Session, user_id: str, barcode: str) -> List[models.InventoryItem]:
    """
    Retrieve every zone-scoped record a user holds for a barcode.
    
    Args:
        db: Database session
        user_id: Owner of the records
        barcode: Barcode to search for
        
    Returns:
        List of InventoryItem objects, oldest first
    """
    return (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.user_id == user_id, models.InventoryItem.barcode == barcode)
        .order_by(models.InventoryItem.id)
        .all()
    )

def get_inventory_items(
    db: Session,
    user_id: str,
    barcode: Optional[str] = None,
    zone: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
) -> List[models.InventoryItem]:
    """
    Retrieve a user's inventory items with optional filters and pagination.
    
    Args:
        db: Database session
        user_id: Owner of the records
        barcode: Only return records for this barcode
        zone: Only return records in this zone
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return
        
    Returns:
        List of InventoryItem objects
    """
    query = db.query(models.InventoryItem).filter(models.InventoryItem.user_id == user_id)
    if barcode is not None:
        query = query.filter(models.InventoryItem.barcode == barcode)
    if zone is not None:
        query = query.filter(models.InventoryItem.zone == zone)
    return query.order_by(models.InventoryItem.id).offset(skip).limit(limit).all()

def create_inventory_item(db: Session, item: dict) -> models.InventoryItem:
    """
    Insert a new inventory item.
    
    Args:
        db: Database session
        item: Column values for the new record
        
    Returns:
        Created InventoryItem object (flushed, not committed)
    """
    db_item = models.InventoryItem(**item)
    db.add(db_item)
    db.flush()
    return db_item

def adjust_quantity(db: Session, item_id: int, action: str) -> Optional[models.InventoryItem]:
    """
    Apply one increment or decrement as a single UPDATE statement.
    
    The new quantity is computed by the database from the stored value, so two
    concurrent adjustments of the same record cannot overwrite each other.
    Decrements floor at zero.
    
    Args:
        db: Database session
        item_id: ID of the inventory item to adjust
        action: "increment" or "decrement"
        
    Returns:
        Refreshed InventoryItem object or None if not found
    """
    quantity = models.InventoryItem.quantity
    if action == "increment":
        new_quantity = quantity + 1
    else:
        new_quantity = case((quantity > 0, quantity - 1), else_=0)
    
    result = db.execute(
        update(models.InventoryItem)
        .where(models.InventoryItem.id == item_id)
        .values(quantity=new_quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    
    db_item = get_inventory_item(db, item_id)
    db.refresh(db_item)
    return db_item

def get_applied_mutation(db: Session, user_id: str, mutation_id: str) -> Optional[models.AppliedMutation]:
    """
    Look up a previously applied client mutation.
    
    Args:
        db: Database session
        user_id: Owner of the mutation
        mutation_id: Client-generated mutation id
        
    Returns:
        AppliedMutation object or None if the id has not been applied
    """
    return (
        db.query(models.AppliedMutation)
        .filter(models.AppliedMutation.user_id == user_id, models.AppliedMutation.mutation_id == mutation_id)
        .first()
    )

def record_applied_mutation(db: Session, user_id: str, mutation_id: str, item_id: int) -> models.AppliedMutation:
    """
    Add a mutation id to the ledger (flushed, not committed).
    
    A ledger row left pointing at a record that no longer exists is moved to
    the new record instead of being inserted twice.
    """
    entry = get_applied_mutation(db, user_id, mutation_id)
    if entry is None:
        entry = models.AppliedMutation(user_id=user_id, mutation_id=mutation_id, item_id=item_id)
        db.add(entry)
    else:
        entry.item_id = item_id
        entry.applied_at = datetime.utcnow()
    db.flush()
    return entry
