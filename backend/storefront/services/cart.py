"""
storefront/services/cart.py - Cart upsert flow.

add_to_cart:
1. product must exist and be active (else None -> 404 in the router)
2. stock 0 -> OutOfStockError, nothing written
3. requested quantity clamped to [1, min(stock, cap)]
4. atomic insert-or-increment of the (owner, product) line
5. line count re-read for the badge
"""
import logging
from typing import Optional

from storefront.config import Settings
from storefront.repositories.store import StoreClient
from storefront.schemas.cart import CartAddResult, CartCount, CartLineOut, CartOut
from storefront.services.catalog import max_selectable
from storefront.utils.query import clamp

logger = logging.getLogger("storefront.cart")


class OutOfStockError(Exception):
    pass


def badge_text(count: int) -> Optional[str]:
    if count <= 0:
        return None
    return "99+" if count > 99 else str(count)


def cart_count(store: StoreClient) -> CartCount:
    count = store.count_cart_lines()
    return CartCount(count=count, badge=badge_text(count))


def add_to_cart(store: StoreClient, product_id: str, quantity: int, settings: Settings) -> Optional[CartAddResult]:
    product = store.get_product(product_id)
    if product is None:
        return None

    limit = max_selectable(product.get("stock_quantity", 0), settings.cart_max_line_quantity)
    if limit <= 0:
        raise OutOfStockError(product_id)

    requested = clamp(int(quantity), 1, limit)
    cap = limit if settings.cart_clamp_on_increment else None
    line, created, clamped = store.upsert_cart_line(product_id, requested, cap)

    logger.info("cart upsert uid=%s product=%s qty=%d created=%s clamped=%s",
                store.owner_id, product_id, requested, created, clamped)
    return CartAddResult(
        line=CartLineOut(**line),
        created=created,
        clamped=clamped or requested != quantity,
        count=cart_count(store),
    )


def get_cart(store: StoreClient) -> CartOut:
    lines = [CartLineOut(**row) for row in store.list_cart_lines()]
    return CartOut(user_id=store.owner_id, items=lines, count=CartCount(count=len(lines), badge=badge_text(len(lines))))
