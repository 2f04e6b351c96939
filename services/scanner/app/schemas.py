"""
Pydantic schemas for scans, queued mutations and the local projection.
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel

class ProductData(BaseModel):
    """Product metadata captured at scan time."""
    product: str = ""
    colour: str = ""
    size: str = ""
    zone: Optional[str] = None

class ScanCreate(BaseModel):
    """A scan as emitted by the scanning UI, before it is queued."""
    barcode: str
    action: Literal["increment", "decrement"]
    product_data: ProductData = ProductData()
    zone: Optional[str] = None

class PendingMutation(ScanCreate):
    """
    A queued scan.
    
    Attributes:
        id (str): Opaque locally generated id
        created_at (datetime): When the scan was queued
        synced (bool): Whether the server has applied it
    """
    id: str
    created_at: datetime
    synced: bool = False
    
    class Config:
        from_attributes = True

class LocalInventoryRecord(BaseModel):
    """Projected local quantity for one barcode."""
    barcode: str
    product: str
    colour: Optional[str] = None
    size: Optional[str] = None
    quantity: int
    zone: Optional[str] = None
    last_modified: datetime
    
    class Config:
        from_attributes = True
