"""
    Inventory Service API

    This module implements a FastAPI-based microservice that owns the canonical,
    zone-scoped inventory records and reconciles scanner mutations against them.

    The service exposes:
    - Sync endpoint: applies one increment/decrement to the right zone record
    - Read endpoints for the caller's inventory records
    - Health endpoint: Provides service health status for monitoring, orchestration
      and scanner connectivity checks
"""
from typing import List, Optional
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import crud, models, schemas, auth
from .database import engine, get_db
from .reconciliation import ReconciliationError, reconcile

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="inventory-service")

@app.exception_handler(ReconciliationError)
def reconciliation_error_handler(request: Request, exc: ReconciliationError):
    """Render reconciliation failures as the sync error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}}
    )

@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the inventory service.

    Used by orchestrators and load balancers, and polled by scanners to decide
    whether they are online.

    Returns:
        dict: A dictionary containing the health status of the service.
            - status (str): "healthy" if the service is operational.

    Example:
        GET /healthz
        Response: {"status": "healthy"}
    """
    return {"status": "healthy"}

@app.post(
    "/sync",
    response_model=schemas.SyncResponse,
    responses={400: {"model": schemas.ErrorEnvelope}, 500: {"model": schemas.ErrorEnvelope}}
)
def sync_inventory(
    request: schemas.SyncRequest,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Apply a single increment/decrement scan to the caller's inventory.

    Args:
        request: Action, barcode, optional zone, product data and mutation id
        db: Database session (injected)
        current_user: Current authenticated user (injected)

    Returns:
        The reconciled inventory record with an isNewItem flag

    Raises:
        ReconciliationError: rendered as {"error": {"code", "message"}}
    """
    result = reconcile(db, current_user.id, request)
    item = schemas.InventoryItem.model_validate(result.item)
    return schemas.SyncResponse(**item.model_dump(), is_new_item=result.is_new_item)

@app.get("/", response_model=List[schemas.InventoryItem])
def list_inventory_items(
    barcode: Optional[str] = None,
    zone: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    List the caller's inventory items with optional filters and pagination.

    Args:
        barcode: Only return records for this barcode
        zone: Only return records in this zone
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
        db: Database session (injected)
        current_user: Current authenticated user (injected)

    Returns:
        List of inventory item objects
    """
    return crud.get_inventory_items(
        db, current_user.id, barcode=barcode, zone=zone, skip=skip, limit=limit
    )

@app.get("/{item_id}", response_model=schemas.InventoryItem)
def get_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Get a single inventory item by ID.

    Args:
        item_id: ID of the inventory item to retrieve
        db: Database session (injected)
        current_user: Current authenticated user (injected)

    Returns:
        Inventory item object

    Raises:
        HTTPException: 404 if the item does not exist or belongs to another user
    """
    db_item = crud.get_inventory_item(db, item_id=item_id, user_id=current_user.id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item
