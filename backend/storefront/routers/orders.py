"""
storefront/routers/orders.py
Order history of the caller. Orders are created and moved between statuses
outside this service; here they are only read.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.core.deps import get_user_store
from storefront.repositories.store import StoreClient
from storefront.schemas.order import OrderOut, OrderStatusFilter
from storefront.services import orders as order_service

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=List[OrderOut])
@router.get("/", response_model=List[OrderOut], include_in_schema=False)
def list_my_orders(
    status: OrderStatusFilter = Query("all", description="Order status or 'all'"),
    store: StoreClient = Depends(get_user_store),
):
    """Newest first."""
    return order_service.list_orders(store, status)


@router.get("/{order_id}", response_model=OrderOut)
def get_order_detail(order_id: str, store: StoreClient = Depends(get_user_store)):
    order = order_service.get_order(store, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
