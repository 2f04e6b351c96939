"""
Offline controller for the scanner agent.

Routes each scan either straight to the inventory service or into the durable
local queue, keeps the local projection current, and starts a drain when the
device comes back online with scans still queued.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from . import projection, scan_queue, schemas
from .clients import inventory_client
from .connectivity import ConnectivityEvent, ConnectivityMonitor
from .sync import ProgressCallback, SyncOrchestrator, SyncResult

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """
    Result of handling one scan.
    
    Attributes:
        mutation_id (str): Id of the queued mutation backing the scan
        queued (bool): True if the scan is waiting in the local queue
        record (dict): Server record when the scan was applied directly
        local_item: Local projection after the scan
        error (str): Dispatch error when a direct send failed
    """
    mutation_id: str
    queued: bool
    local_item: schemas.LocalInventoryRecord
    record: Optional[dict] = None
    error: Optional[str] = None


class OfflineController:
    """
    Scanner-side entry point tying the queue, projection, monitor and
    orchestrator together for one signed-in device session.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        monitor: ConnectivityMonitor,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        on_progress: Optional[ProgressCallback] = None
    ):
        self._session_maker = session_maker
        self._client = client
        self.monitor = monitor
        self.token = token
        self.pending_sync_count = 0
        self.orchestrator = SyncOrchestrator(session_maker, self._dispatch, monitor, on_progress=on_progress)
        self._unsubscribe = monitor.subscribe(self._on_connectivity_change)

    def close(self) -> None:
        """Stop listening to connectivity changes."""
        self._unsubscribe()

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    @property
    def is_syncing(self) -> bool:
        return self.orchestrator.is_syncing

    async def _dispatch(self, scan: schemas.PendingMutation):
        return await inventory_client.sync_scan(scan, self.token, self._client)

    async def refresh_pending_count(self) -> int:
        async with self._session_maker() as db:
            self.pending_sync_count = await scan_queue.pending_count(db)
        return self.pending_sync_count

    async def add_offline_scan(self, scan: schemas.ScanCreate) -> Tuple[str, schemas.LocalInventoryRecord]:
        """
        Queue a scan and fold it into the local projection.
        
        Returns:
            Tuple of (mutation_id, local record after the scan)
        
        Raises:
            sqlalchemy.exc.SQLAlchemyError: if local storage fails
        """
        async with self._session_maker() as db:
            mutation_id = await scan_queue.enqueue(db, scan)
            local_item = await projection.apply_mutation(db, scan)
        await self.refresh_pending_count()
        return mutation_id, local_item

    async def scan(self, scan: schemas.ScanCreate) -> ScanOutcome:
        """
        Handle one scan from the floor.
        
        Offline, the scan is only queued. Online with an empty queue, it is
        queued first and then sent directly; it stays queued if the send fails.
        Online while older scans are still queued or a drain is running, it is
        queued behind them and a drain is triggered so ordering is kept.
        """
        direct = self.is_online and not self.is_syncing and self.token is not None
        if direct:
            direct = await self.refresh_pending_count() == 0

        mutation_id, local_item = await self.add_offline_scan(scan)

        if not direct:
            queued = True
            if self.is_online:
                await self.trigger_sync()
                async with self._session_maker() as db:
                    queued = await scan_queue.get_scan(db, mutation_id) is not None
            return ScanOutcome(mutation_id=mutation_id, queued=queued, local_item=local_item)

        async with self._session_maker() as db:
            queued_scan = await scan_queue.get_scan(db, mutation_id)
        if queued_scan is None or queued_scan.synced:
            # A drain started meanwhile and already sent it
            return ScanOutcome(mutation_id=mutation_id, queued=False, local_item=local_item)

        success, record, error = await self._dispatch(queued_scan)
        if not success:
            logger.warning(f"Direct sync of {mutation_id} failed, keeping it queued: {error}")
            return ScanOutcome(mutation_id=mutation_id, queued=True, local_item=local_item, error=error)

        async with self._session_maker() as db:
            await scan_queue.mark_synced(db, mutation_id)
            await scan_queue.prune_synced(db)
        await self.refresh_pending_count()
        return ScanOutcome(mutation_id=mutation_id, queued=False, local_item=local_item, record=record)

    async def trigger_sync(self) -> Optional[SyncResult]:
        """
        Drain the queue if signed in, online and not already draining.

        Scans queued while a drain runs are left for the next one, so another
        drain follows as long as entries beyond the ones that just failed are
        waiting.

        Returns:
            The result of the last drain, or None when no drain ran
        """
        if self.token is None:
            return None
        result = await self.orchestrator.run()
        last = result
        while result is not None:
            await self.refresh_pending_count()
            if self.pending_sync_count <= result.failed:
                break
            logger.info(f"{self.pending_sync_count - result.failed} scans queued during sync, draining again")
            result = await self.orchestrator.run()
            if result is not None:
                last = result
        await self.refresh_pending_count()
        return last

    async def get_local_inventory_item(self, barcode: str) -> Optional[schemas.LocalInventoryRecord]:
        async with self._session_maker() as db:
            return await projection.get(db, barcode)

    async def _on_connectivity_change(self, event: ConnectivityEvent) -> None:
        if event is not ConnectivityEvent.BECAME_ONLINE:
            return
        if await self.refresh_pending_count() > 0:
            logger.info(f"Back online with {self.pending_sync_count} queued scans, starting sync")
            await self.trigger_sync()
