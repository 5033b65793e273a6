# storefront/services/orders.py
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from storefront.repositories.store import StoreClient
from storefront.schemas.order import STATUS_LABELS, OrderOut

logger = logging.getLogger("storefront.orders")


def order_doc_to_out(row: Dict[str, Any]) -> Optional[OrderOut]:
    """None for rows that do not form a valid order (missing or unknown status, bad amount)."""
    status = row.get("status")
    try:
        return OrderOut(
            id=row["id"],
            user_id=row.get("user_id", ""),
            total_amount=row.get("total_amount", 0) or 0,
            status=status,
            status_label=STATUS_LABELS.get(status, ""),
            shipping_address=row.get("shipping_address") or {},
            order_note=row.get("order_note"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
    except ValidationError as exc:
        logger.warning("Skipping malformed order %s (status=%r): %d validation error(s)",
                       row.get("id"), status, exc.error_count())
        return None


def list_orders(store: StoreClient, status: Optional[str] = None) -> List[OrderOut]:
    """Caller's orders newest first; `status` of None or 'all' means no filter. Malformed rows are skipped."""
    if status == "all":
        status = None
    orders = (order_doc_to_out(row) for row in store.list_orders(status))
    return [order for order in orders if order is not None]


def get_order(store: StoreClient, order_id: str) -> Optional[OrderOut]:
    row = store.get_order(order_id)
    return order_doc_to_out(row) if row else None
