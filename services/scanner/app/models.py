"""
SQLAlchemy ORM models for the scanner's local storage.
"""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String
from .database import Base

class PendingScan(Base):
    """
    A scan waiting to be replayed against the inventory service.
    
    Attributes:
        seq (int): Insertion sequence, breaks ties between equal timestamps
        id (str): Opaque locally generated mutation id, sent to the server
        barcode (str): Scanned barcode
        action (str): "increment" or "decrement"
        product_data (dict): product, colour, size and optional zone
        zone (str): Zone the scan applies to (optional)
        created_at (datetime): When the scan was queued
        synced (bool): Set once the server has applied the scan
    """
    __tablename__ = "pending_scans"
    
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, index=True, nullable=False)
    barcode = Column(String, nullable=False)
    action = Column(String, nullable=False)
    product_data = Column(JSON, nullable=False, default=dict)
    zone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    synced = Column(Boolean, default=False, nullable=False, index=True)


class OfflineInventoryItem(Base):
    """
    Locally projected quantity for a barcode, for feedback while offline.
    
    One row per barcode; zone is informational only.
    """
    __tablename__ = "offline_inventory"
    
    barcode = Column(String, primary_key=True)
    product = Column(String, nullable=False, default="")
    colour = Column(String, nullable=True)
    size = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    zone = Column(String, nullable=True)
    last_modified = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
