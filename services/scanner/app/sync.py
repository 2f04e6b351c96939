"""
Sync orchestrator: drains the offline queue against the inventory service.

A drain replays a snapshot of the unsynced queue one scan at a time, waiting
for each response before sending the next, so scans for the same barcode reach
the server in the order they were made. A failed scan stays queued for the next
drain and does not stop the rest of the batch.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from . import scan_queue, schemas
from .connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

Dispatcher = Callable[[schemas.PendingMutation], Awaitable[Tuple[bool, Optional[dict], Optional[str]]]]
ProgressCallback = Callable[["SyncProgress"], None]


class SyncState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class SyncProgress:
    current: int
    total: int


@dataclass
class SyncFailure:
    mutation_id: str
    barcode: str
    error: str


@dataclass
class SyncResult:
    """Aggregate outcome of one drain."""
    succeeded: int = 0
    failed: int = 0
    failures: List[SyncFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def summary(self) -> Optional[str]:
        """Human-readable summary, only when something failed."""
        if self.failed == 0:
            return None
        return f"Synced {self.succeeded} items, {self.failed} failed"


class SyncOrchestrator:
    """
    Idle -> Draining -> Idle.
    
    A drain starts only from Idle, while online, with a non-empty queue.
    Calling run() during a drain does nothing; the call is not queued.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        dispatch: Dispatcher,
        monitor: ConnectivityMonitor,
        on_progress: Optional[ProgressCallback] = None
    ):
        self._session_maker = session_maker
        self._dispatch = dispatch
        self._monitor = monitor
        self._on_progress = on_progress
        self.state = SyncState.IDLE
        self.progress: Optional[SyncProgress] = None
        self.last_sync_time: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.last_result: Optional[SyncResult] = None

    @property
    def is_syncing(self) -> bool:
        return self.state is SyncState.DRAINING

    async def run(self) -> Optional[SyncResult]:
        """
        Drain the queue once.
        
        Returns:
            The SyncResult, or None when no drain was started (already draining,
            offline, or nothing queued)
        """
        if self.state is SyncState.DRAINING or not self._monitor.is_online:
            return None
        # Claimed before the first await so a concurrent run() sees DRAINING
        self.state = SyncState.DRAINING
        try:
            async with self._session_maker() as db:
                pending = await scan_queue.list_unsynced(db)
            if not pending:
                return None

            self.last_error = None
            result = await self._drain(pending)

            async with self._session_maker() as db:
                pruned = await scan_queue.prune_synced(db)
            logger.info(f"Drain finished: {result.succeeded} synced, {result.failed} failed, {pruned} pruned")

            self.last_sync_time = datetime.utcnow()
            self.last_result = result
            self.last_error = result.summary
            return result
        except Exception as e:
            logger.error(f"Sync error: {e}")
            self.last_error = f"Failed to sync data: {e}"
            return None
        finally:
            self.state = SyncState.IDLE
            self.progress = None

    async def _drain(self, pending: List[schemas.PendingMutation]) -> SyncResult:
        result = SyncResult()
        total = len(pending)
        self._report(SyncProgress(current=0, total=total))

        for index, scan in enumerate(pending):
            try:
                success, _, error = await self._dispatch(scan)
                if success:
                    async with self._session_maker() as db:
                        await scan_queue.mark_synced(db, scan.id)
            except Exception as e:
                success, error = False, f"Unexpected error: {e}"

            if success:
                result.succeeded += 1
            else:
                logger.error(f"Error syncing scan {scan.id}: {error}")
                result.failed += 1
                result.failures.append(SyncFailure(mutation_id=scan.id, barcode=scan.barcode, error=error or "unknown error"))
            self._report(SyncProgress(current=index + 1, total=total))

        return result

    def _report(self, progress: SyncProgress) -> None:
        self.progress = progress
        if self._on_progress is not None:
            self._on_progress(progress)
