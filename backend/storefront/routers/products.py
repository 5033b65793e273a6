"""
# `storefront/routers/products.py` - Catalog endpoints

### `GET /products`
Paged catalog of active products.
- `category`: one of the categories or `all` (unknown values list everything)
- `q`: case-insensitive substring of name or description
- `sort`: `newest` | `name_asc` | `price_asc` | `price_desc`
- `page` (≥1), `page_size` (default CATALOG_PAGE_SIZE, capped at CATALOG_MAX_PAGE_SIZE)

Returns `{items, total, page, page_size, total_pages}`.

### `GET /products/featured`
Newest active products for the landing page. Never fails; an unavailable store
yields an empty list.

### `GET /products/{product_id}`
Single active product with `max_quantity` / `purchasable`. Missing or inactive → `404`.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.config import Settings, get_settings
from storefront.core.deps import get_store
from storefront.repositories.store import StoreClient
from storefront.schemas.product import CatalogPage, ProductOut, SortKey
from storefront.services import catalog

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=CatalogPage, summary="List Products")
@router.get("/", response_model=CatalogPage, include_in_schema=False)
def list_products(
    category: Optional[str] = Query(None, description="Category or 'all'"),
    q: Optional[str] = Query(None, max_length=200, description="Search in name or description"),
    sort: SortKey = Query("newest"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    query = catalog.build_query(
        category, q, sort, page,
        page_size or settings.catalog_page_size,
        settings.catalog_max_page_size,
    )
    return catalog.search_catalog(store, query, settings.cart_max_line_quantity)


@router.get("/featured", response_model=List[ProductOut], summary="Featured Products")
def featured_products(
    limit: Optional[int] = Query(None, ge=1, le=24),
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return catalog.featured_products(store, limit or settings.featured_limit, settings.cart_max_line_quantity)


@router.get("/{product_id}", response_model=ProductOut, summary="Get Product")
def get_product(
    product_id: str,
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    product = catalog.get_product(store, product_id, settings.cart_max_line_quantity)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
