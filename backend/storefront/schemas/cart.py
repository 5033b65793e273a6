"""
storefront/schemas/cart.py - Pydantic models for Cart.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class AddItemBody(BaseModel):
    """Add to cart by product id. Quantity is clamped server side, never rejected."""
    product_id: str = Field(..., description="Product ID (the same 'id' you see in /products).")
    quantity: int = Field(1, description="Requested quantity; clamped to [1, min(stock, 99)].")

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = (v or "").strip()
        for ch in ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0"):
            v = v.replace(ch, "")
        if not v:
            raise ValueError("product_id cannot be empty")
        return v


class CartLineOut(BaseModel):
    id: str
    user_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartCount(BaseModel):
    count: int = 0
    badge: Optional[str] = Field(None, description="Badge text; '99+' above 99, null when empty")


class CartAddResult(BaseModel):
    line: CartLineOut
    created: bool = Field(..., description="True if a new line was inserted")
    clamped: bool = Field(False, description="True if the quantity was capped")
    count: CartCount


class CartOut(BaseModel):
    user_id: str
    items: List[CartLineOut] = Field(default_factory=list)
    count: CartCount
