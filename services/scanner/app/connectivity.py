"""
Connectivity monitor for the scanner agent.

Tracks whether the inventory service is reachable and notifies subscribers
when the state flips between online and offline.
"""
import asyncio
import inspect
import logging
from enum import Enum
from typing import Callable, List, Optional
import httpx

from .clients import inventory_client
from .config import CONNECTIVITY_CHECK_INTERVAL

logger = logging.getLogger(__name__)


class ConnectivityEvent(str, Enum):
    BECAME_ONLINE = "became-online"
    BECAME_OFFLINE = "became-offline"


class ConnectivityMonitor:
    """
    Observer over the device's network signal.
    
    Listeners receive a ConnectivityEvent and may be plain functions or
    coroutine functions; coroutine listeners are awaited in subscription order.
    """

    def __init__(self, online: bool = True, client: Optional[httpx.AsyncClient] = None):
        self._online = online
        self._client = client
        self._listeners: List[Callable] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        """
        Register a transition listener.
        
        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def set_online(self, online: bool) -> None:
        """Record the current state; listeners only hear about real transitions."""
        if online == self._online:
            return
        self._online = online
        event = ConnectivityEvent.BECAME_ONLINE if online else ConnectivityEvent.BECAME_OFFLINE
        logger.info(f"Connectivity changed: {event.value}")
        for listener in list(self._listeners):
            result = listener(event)
            if inspect.isawaitable(result):
                await result

    async def check(self) -> bool:
        """Probe the inventory service health endpoint and update the state."""
        online = await inventory_client.check_health(self._client)
        await self.set_online(online)
        return online

    async def watch(self, interval: float = CONNECTIVITY_CHECK_INTERVAL) -> None:
        """Probe every `interval` seconds until cancelled."""
        while True:
            await self.check()
            await asyncio.sleep(interval)
