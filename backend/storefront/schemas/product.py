"""
# `storefront/schemas/product.py` - Product schemas

| Field          | Type        | Notes |
|----------------|-------------|-------|
| id             | `str`       | Firestore document id |
| name           | `str`       | |
| description    | `str`/null  | optional |
| category       | `Category`  | electronics, clothing, books, food, sports, beauty, home |
| price          | `int`       | integer currency unit |
| stock_quantity | `int`       | ≥0 |
| is_active      | `bool`      | only active products are listed |
| created_at     | `datetime`  | |
| max_quantity   | `int`       | min(stock_quantity, 99), largest selectable quantity |
| purchasable    | `bool`      | stock_quantity > 0 |

`CatalogPage` wraps one page of the catalog with the total matching count.
"""
from datetime import datetime
from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, Field

Category = Literal["electronics", "clothing", "books", "food", "sports", "beauty", "home"]
CategoryFilter = Literal["all", "electronics", "clothing", "books", "food", "sports", "beauty", "home"]
SortKey = Literal["newest", "name_asc", "price_asc", "price_desc"]

CATEGORIES = get_args(Category)
SORT_KEYS = get_args(SortKey)


class ProductOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: Category
    price: int = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True
    created_at: Optional[datetime] = None
    max_quantity: int = Field(0, description="Largest quantity selectable for one add-to-cart")
    purchasable: bool = False

    model_config = {"from_attributes": True}


class CatalogQuery(BaseModel):
    """Normalized catalog request."""
    category: CategoryFilter = "all"
    q: str = ""
    sort: SortKey = "newest"
    page: int = Field(1, ge=1)
    page_size: int = Field(12, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class CatalogPage(BaseModel):
    items: List[ProductOut] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 12
    total_pages: int = 0
