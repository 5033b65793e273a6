# storefront/schemas/order.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]
OrderStatusFilter = Literal["all", "pending", "confirmed", "shipped", "delivered", "cancelled"]

STATUS_LABELS: Dict[str, str] = {
    "pending": "Awaiting payment",
    "confirmed": "Order confirmed",
    "shipped": "Shipping",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}


class OrderOut(BaseModel):
    id: str
    user_id: str
    total_amount: int
    status: OrderStatus
    status_label: str = ""
    # Opaque payload written by checkout; stored and returned as-is
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    order_note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
