"""
Pydantic schemas for request/response validation in the Inventory service.

These schemas define the structure of data for API requests and responses.
The sync request and response keep the camelCase keys scanner clients send.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class ProductData(BaseModel):
    """Product metadata captured at scan time. Blank or null fields are allowed."""
    product: Optional[str] = ""
    colour: Optional[str] = ""
    size: Optional[str] = ""
    zone: Optional[str] = None

class SyncRequest(BaseModel):
    """
    Schema for a single increment/decrement request.
    
    Action and barcode are checked by the reconciliation engine so that a
    malformed request gets the error envelope instead of a schema error.
    """
    action: Optional[str] = None
    barcode: Optional[str] = None
    zone: Optional[str] = None
    product_data: Optional[ProductData] = Field(default=None, alias="productData")
    mutation_id: Optional[str] = Field(default=None, alias="mutationId")
    
    class Config:
        populate_by_name = True

class InventoryItem(BaseModel):
    """
    Schema for inventory item responses, includes all database fields.
    
    Attributes:
        id (int): Inventory item's unique identifier
        user_id (str): Owner of the record
        barcode (str): Product barcode
        product (str): Product name
        colour (str): Product colour
        size (str): Product size
        zone (str): Storage zone
        quantity (int): Quantity on hand
        low_stock_threshold (int): Low stock alert level
        created_at (datetime): When the item was created
        updated_at (datetime): When the quantity last changed
    """
    id: int
    user_id: str
    barcode: str
    product: str
    colour: str
    size: str
    zone: str
    quantity: int
    low_stock_threshold: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True

class SyncResponse(InventoryItem):
    """Reconciled record tagged with whether the request created it."""
    is_new_item: bool = Field(alias="isNewItem")
    
    class Config:
        from_attributes = True
        populate_by_name = True

class ErrorDetail(BaseModel):
    code: str
    message: str

class ErrorEnvelope(BaseModel):
    """Error body returned by the sync endpoint."""
    error: ErrorDetail
