"""
storefront/services/catalog.py - Catalog query flow.

Composes category / free-text / sort / page parameters into one Firestore read
and returns a `CatalogPage`.

- Without a text query everything is pushed down: equality filters, ordering,
  offset/limit and the count aggregation.
- With a text query the equality-filtered ordered stream is fetched and the
  substring filter and page window are applied here (Firestore has no
  substring operator).
"""
import logging
from typing import Any, Dict, List, Optional

from storefront.core.errors import RemoteQueryError
from storefront.repositories.store import StoreClient
from storefront.schemas.product import CATEGORIES, SORT_KEYS, CatalogPage, CatalogQuery, ProductOut
from storefront.utils.query import SORT_SPECS, matches_text, total_pages, window

logger = logging.getLogger("storefront.catalog")

MAX_SELECTABLE = 99


def normalize_category(value: Optional[str]) -> str:
    """Unknown or empty categories fall back to 'all'."""
    value = (value or "").strip().lower()
    if value in CATEGORIES:
        return value
    if value and value != "all":
        logger.debug("Unknown category %r, listing all", value)
    return "all"


def build_query(category: Optional[str], q: Optional[str], sort: str, page: int,
                page_size: int, max_page_size: int) -> CatalogQuery:
    return CatalogQuery(
        category=normalize_category(category),
        q=(q or "").strip(),
        sort=sort if sort in SORT_KEYS else "newest",
        page=max(1, page),
        page_size=max(1, min(page_size, max_page_size)),
    )


def max_selectable(stock_quantity: int, cap: int = MAX_SELECTABLE) -> int:
    """Largest quantity one add-to-cart may request: min(stock, cap)."""
    return max(0, min(int(stock_quantity or 0), cap))


def to_product_out(row: Dict[str, Any], cap: int = MAX_SELECTABLE) -> ProductOut:
    stock = int(row.get("stock_quantity", 0) or 0)
    return ProductOut(
        id=row["id"],
        name=row.get("name", ""),
        description=row.get("description"),
        category=row.get("category"),
        price=int(row.get("price", 0) or 0),
        stock_quantity=stock,
        is_active=bool(row.get("is_active", False)),
        created_at=row.get("created_at"),
        max_quantity=max_selectable(stock, cap),
        purchasable=stock > 0,
    )


def search_catalog(store: StoreClient, query: CatalogQuery, cap: int = MAX_SELECTABLE) -> CatalogPage:
    field, descending = SORT_SPECS[query.sort]
    category = None if query.category == "all" else query.category

    if query.q:
        rows = store.stream_products(category, field, descending)
        matched = [r for r in rows if matches_text(r, query.q)]
        total = len(matched)
        rows = window(matched, query.offset, query.page_size)
    else:
        rows, total = store.page_products(category, field, descending, query.offset, query.page_size)

    logger.debug("catalog category=%s q=%r sort=%s page=%d -> %d/%d",
                 query.category, query.q, query.sort, query.page, len(rows), total)
    return CatalogPage(
        items=[to_product_out(r, cap) for r in rows],
        total=total,
        page=query.page,
        page_size=query.page_size,
        total_pages=total_pages(total, query.page_size),
    )


def featured_products(store: StoreClient, limit: int, cap: int = MAX_SELECTABLE) -> List[ProductOut]:
    """Newest active products. Degrades to an empty list when the store fails."""
    try:
        rows = store.latest_products(limit)
    except RemoteQueryError as exc:
        logger.error("Featured products unavailable: %s", exc.message)
        return []
    return [to_product_out(r, cap) for r in rows]


def get_product(store: StoreClient, product_id: str, cap: int = MAX_SELECTABLE) -> Optional[ProductOut]:
    row = store.get_product(product_id)
    return to_product_out(row, cap) if row else None
