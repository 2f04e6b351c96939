"""
Durable local queue of scans awaiting sync.

Entries are replayed in the order they were queued. Storage errors are never
swallowed here; they propagate to the caller so a scan is not silently lost.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import models, schemas

logger = logging.getLogger(__name__)


def new_mutation_id() -> str:
    return f"scan_{uuid.uuid4().hex}"


async def enqueue(db: AsyncSession, scan: schemas.ScanCreate) -> str:
    """
    Persist a scan as an unsynced pending mutation.
    
    Args:
        db: Local database session
        scan: The scan to queue
        
    Returns:
        The generated mutation id
    """
    mutation_id = new_mutation_id()
    db.add(models.PendingScan(
        id=mutation_id,
        barcode=scan.barcode,
        action=scan.action,
        product_data=scan.product_data.model_dump(),
        zone=scan.zone,
        created_at=datetime.utcnow(),
        synced=False
    ))
    await db.commit()
    logger.info(f"Queued {scan.action} for barcode {scan.barcode} as {mutation_id}")
    return mutation_id


async def list_unsynced(db: AsyncSession) -> List[schemas.PendingMutation]:
    """Unsynced mutations in replay order (oldest first)."""
    result = await db.execute(
        select(models.PendingScan)
        .where(models.PendingScan.synced.is_(False))
        .order_by(models.PendingScan.created_at, models.PendingScan.seq)
    )
    return [schemas.PendingMutation.model_validate(row) for row in result.scalars()]


async def get_pending_scans(db: AsyncSession) -> List[schemas.PendingMutation]:
    """Every queued mutation, synced or not, in queue order."""
    result = await db.execute(
        select(models.PendingScan).order_by(models.PendingScan.created_at, models.PendingScan.seq)
    )
    return [schemas.PendingMutation.model_validate(row) for row in result.scalars()]


async def pending_count(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(models.PendingScan).where(models.PendingScan.synced.is_(False))
    )
    return result.scalar_one()


async def mark_synced(db: AsyncSession, mutation_id: str) -> None:
    """
    Flag a mutation as applied by the server.
    
    Unknown or already synced ids are ignored.
    """
    result = await db.execute(select(models.PendingScan).where(models.PendingScan.id == mutation_id))
    scan = result.scalar_one_or_none()
    if scan is None or scan.synced:
        return
    scan.synced = True
    await db.commit()


async def prune_synced(db: AsyncSession) -> int:
    """
    Delete every synced mutation. Unsynced entries are untouched.
    
    Returns:
        Number of entries removed
    """
    result = await db.execute(delete(models.PendingScan).where(models.PendingScan.synced.is_(True)))
    await db.commit()
    return result.rowcount


async def get_scan(db: AsyncSession, mutation_id: str) -> Optional[schemas.PendingMutation]:
    """A queued mutation by id, or None once it has been pruned."""
    result = await db.execute(select(models.PendingScan).where(models.PendingScan.id == mutation_id))
    scan = result.scalar_one_or_none()
    if scan is None:
        return None
    return schemas.PendingMutation.model_validate(scan)
