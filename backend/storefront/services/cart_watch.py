"""
storefront/services/cart_watch.py - Live cart count.

Firestore delivers snapshot callbacks on its own listener thread. Each callback
only sets a "changed" flag on the event loop; the consumer then re-reads the
line count (no payload diffing). Bursts of changes collapse into one re-read.
Reconnection is handled by the Firestore watch itself.
"""
import asyncio
import logging
from typing import AsyncIterator

from starlette.concurrency import run_in_threadpool

from storefront.repositories.store import StoreClient
from storefront.schemas.cart import CartCount
from storefront.services.cart import cart_count

logger = logging.getLogger("storefront.cart_watch")


class CartWatcher:
    def __init__(self, store: StoreClient):
        self._store = store
        self._changed = asyncio.Event()
        self._loop = None
        self._watch = None

    def _on_change(self) -> None:
        self._loop.call_soon_threadsafe(self._changed.set)

    async def __aenter__(self) -> "CartWatcher":
        self._loop = asyncio.get_running_loop()
        self._watch = await run_in_threadpool(self._store.watch_cart_lines, self._on_change)
        logger.debug("cart watch started uid=%s", self._store.owner_id)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._watch is not None:
            await run_in_threadpool(self._watch.unsubscribe)
            self._watch = None
        logger.debug("cart watch stopped uid=%s", self._store.owner_id)

    async def counts(self) -> AsyncIterator[CartCount]:
        """Yields the fresh count after every change notification."""
        while True:
            await self._changed.wait()
            self._changed.clear()
            yield await run_in_threadpool(cart_count, self._store)
