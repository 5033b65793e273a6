"""
storefront/routers/carts.py
Cart endpoints (logged-in users): list lines, add (insert-or-increment), line count,
and a WebSocket that pushes the count whenever the caller's cart rows change.

- POST /cart/items clamps the quantity to [1, min(stock, 99)]; out of stock → 409, nothing written.
- GET /cart/count returns `{count, badge}`; badge is "99+" above 99.
- WS /cart/ws?token=<id_token> sends `{count, badge}` on connect and after every change.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from storefront.config import Settings, get_settings
from storefront.core.auth import principal_from_token
from storefront.core.deps import get_store, get_user_store
from storefront.core.errors import RemoteQueryError
from storefront.repositories.store import StoreClient
from storefront.schemas.cart import AddItemBody, CartAddResult, CartCount, CartOut
from storefront.services import cart as cart_service
from storefront.services.cart_watch import CartWatcher

logger = logging.getLogger("storefront.routers.cart")

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=CartOut)
@router.get("/", response_model=CartOut, include_in_schema=False)
def get_cart(store: StoreClient = Depends(get_user_store)):
    return cart_service.get_cart(store)


@router.post("/items", response_model=CartAddResult)
def add_to_cart(
    payload: AddItemBody,
    store: StoreClient = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
):
    """Add a product; repeat adds increment the existing line."""
    try:
        result = cart_service.add_to_cart(store, payload.product_id, payload.quantity, settings)
    except cart_service.OutOfStockError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product is out of stock")
    if result is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return result


@router.get("/count", response_model=CartCount)
def get_cart_count(store: StoreClient = Depends(get_user_store)):
    return cart_service.cart_count(store)


async def _drain(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass


async def _pump(websocket: WebSocket, watcher: CartWatcher) -> None:
    try:
        async for count in watcher.counts():
            await websocket.send_json(count.model_dump())
    except RemoteQueryError as exc:
        await websocket.send_json({"detail": exc.message, "retryable": True})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)


async def _run_until_first_done(*coros) -> list:
    """
    Runs the coroutines until one finishes, cancels the rest, and returns the
    exceptions raised by the ones that finished.
    """
    tasks = [asyncio.create_task(c) for c in coros]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    errors = [task.exception() for task in done if not task.cancelled() and task.exception()]
    for exc in errors:
        logger.warning("cart feed task failed: %r", exc)
    return errors


@router.websocket("/ws")
async def cart_feed(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    store: StoreClient = Depends(get_store),
):
    try:
        principal = await run_in_threadpool(principal_from_token, token, settings)
    except HTTPException as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc.detail))
        return
    except RemoteQueryError as exc:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=exc.message)
        return

    await websocket.accept()
    async with CartWatcher(store.scoped(principal.uid)) as watcher:
        await _run_until_first_done(_drain(websocket), _pump(websocket, watcher))
    logger.debug("cart feed closed uid=%s", principal.uid)
