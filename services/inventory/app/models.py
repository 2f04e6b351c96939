"""
SQLAlchemy ORM models for the Inventory service.

Defines the database schema for the canonical inventory records, the
applied-mutation ledger and the activity log.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from .database import Base

class InventoryItem(Base):
    """
    Canonical inventory record: one batch of a product sitting in one zone.
    
    Attributes:
        id (int): Primary key, auto-incremented inventory item ID
        user_id (str): Owner of the record
        barcode (str): Product barcode (not unique on its own)
        product (str): Product name
        colour (str): Product colour
        size (str): Product size
        zone (str): Storage zone holding this batch
        quantity (int): Quantity on hand, never negative
        low_stock_threshold (int): Quantity at or below which the item counts as low stock
        created_at (datetime): Timestamp when the item was created
        updated_at (datetime): Timestamp of the last quantity change
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("user_id", "barcode", "zone", name="uq_inventory_items_user_barcode_zone"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    barcode = Column(String, nullable=False, index=True)
    product = Column(String, nullable=False)
    colour = Column(String, nullable=False, default="")
    size = Column(String, nullable=False, default="")
    zone = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AppliedMutation(Base):
    """
    Ledger of client mutation ids that have already been applied.
    
    A replayed mutation id is recognised here and not applied twice.
    """
    __tablename__ = "applied_mutations"
    __table_args__ = (
        UniqueConstraint("user_id", "mutation_id", name="uq_applied_mutations_user_mutation"),
    )
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    mutation_id = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ActivityLog(Base):
    """
    ActivityLog model recording each applied inventory change.
    
    Attributes:
        id (int): Primary key, auto-incrementing event ID
        user_id (str): User who made the change
        action_type (str): "inventory_increment" or "inventory_decrement"
        barcode (str): Barcode that changed
        zone (str): Zone of the record that changed
        description (str): Human-readable description of the change
        old_quantity (int): Quantity before the change (None for a new record)
        new_quantity (int): Quantity after the change
        created_at (datetime): Timestamp when the change was applied
    """
    __tablename__ = "activity_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    action_type = Column(String, nullable=False)
    barcode = Column(String, nullable=False)
    zone = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    old_quantity = Column(Integer, nullable=True)
    new_quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
