"""
storefront/repositories/store.py
Firestore facade: the only module that talks to the database.

Collections (prefix-aware via FIREBASE_COLLECTION_PREFIX):
- products                          catalog rows
- cart_items/{uid}_{product_id}     one line per (owner, product)
- orders                            order rows, `user_id` is the owner

`StoreClient(db, settings)` is anonymous; `client.scoped(uid)` returns a client
bound to one identity, required for every cart/order call. Every Google API
failure is re-raised as `RemoteQueryError`.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition, GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter

from storefront.config import Settings
from storefront.core.errors import RemoteQueryError
from storefront.utils.query import sort_rows

logger = logging.getLogger("storefront.store")

PRODUCTS = "products"
CART_ITEMS = "cart_items"
ORDERS = "orders"


def _doc_to_dict(snap) -> Dict[str, Any]:
    data = snap.to_dict() or {}
    data["id"] = data.get("id") or snap.id
    return data


def _count(query) -> int:
    result = query.count(alias="total").get()
    # [[AggregationResult]]
    return int(result[0][0].value) if result and result[0] else 0


def cart_line_id(uid: str, product_id: str) -> str:
    return f"{uid}_{product_id}"


def merge_quantity(current: int, quantity: int, cap: Optional[int]) -> Tuple[int, bool]:
    """Existing + requested, capped when `cap` is given. Returns (quantity, clamped)."""
    new_qty = current + quantity
    if cap is not None and new_qty > cap:
        return cap, True
    return new_qty, False


@firestore.transactional
def _upsert_line_txn(transaction, line_ref, uid: str, product_id: str,
                     quantity: int, cap: Optional[int]) -> Tuple[bool, bool]:
    """Insert-or-increment in one transaction. Returns (created, clamped)."""
    snap = line_ref.get(transaction=transaction)
    if snap.exists:
        current = int((snap.to_dict() or {}).get("quantity", 0) or 0)
        new_qty, clamped = merge_quantity(current, quantity, cap)
        transaction.update(line_ref, {"quantity": new_qty, "updated_at": firestore.SERVER_TIMESTAMP})
        return False, clamped

    transaction.set(line_ref, {
        "user_id": uid,
        "product_id": product_id,
        "quantity": quantity,
        "created_at": firestore.SERVER_TIMESTAMP,
        "updated_at": firestore.SERVER_TIMESTAMP,
    })
    return True, False


class StoreClient:
    def __init__(self, db, settings: Settings, owner_id: Optional[str] = None):
        self._db = db
        self._settings = settings
        self.owner_id = owner_id

    def scoped(self, uid: str) -> "StoreClient":
        return StoreClient(self._db, self._settings, owner_id=uid)

    def _col(self, name: str):
        return self._db.collection(self._settings.collection(name))

    def _owner(self) -> str:
        if not self.owner_id:
            raise RuntimeError("StoreClient is not scoped to an identity")
        return self.owner_id

    # ---------- products ----------
    def _product_query(self, category: Optional[str]):
        q = self._col(PRODUCTS).where(filter=FieldFilter("is_active", "==", True))
        if category:
            q = q.where(filter=FieldFilter("category", "==", category))
        return q

    def stream_products(self, category: Optional[str], order_field: str,
                        descending: bool = False) -> List[Dict[str, Any]]:
        """All active products (optionally one category) in sort order."""
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        base = self._product_query(category)
        try:
            try:
                return [_doc_to_dict(d) for d in base.order_by(order_field, direction=direction).stream()]
            except FailedPrecondition:
                # Composite index missing: equality filters only, order here
                logger.warning("Missing index for products(category=%s, order=%s); sorting in process",
                               category, order_field)
                rows = [_doc_to_dict(d) for d in base.stream()]
                return sort_rows(rows, order_field, descending)
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "stream_products") from exc

    def page_products(self, category: Optional[str], order_field: str, descending: bool,
                      offset: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        """One page window plus the total count, both computed by Firestore."""
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        base = self._product_query(category)
        try:
            total = _count(base)
            q = base.order_by(order_field, direction=direction)
            if offset:
                q = q.offset(offset)
            rows = [_doc_to_dict(d) for d in q.limit(limit).stream()]
            return rows, total
        except FailedPrecondition:
            logger.warning("Missing index for products(category=%s, order=%s); paging in process",
                           category, order_field)
            rows = self.stream_products(category, order_field, descending)
            return rows[offset:offset + limit], len(rows)
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "page_products") from exc

    def latest_products(self, limit: int) -> List[Dict[str, Any]]:
        """Newest active products, no count."""
        base = self._product_query(None)
        try:
            q = base.order_by("created_at", direction=firestore.Query.DESCENDING).limit(limit)
            return [_doc_to_dict(d) for d in q.stream()]
        except FailedPrecondition:
            logger.warning("Missing index for products(order=created_at); sorting in process")
            return self.stream_products(None, "created_at", True)[:limit]
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "latest_products") from exc

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Active product by id, or None."""
        try:
            snap = self._col(PRODUCTS).document(product_id).get()
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "get_product") from exc
        if not snap.exists:
            return None
        data = _doc_to_dict(snap)
        if not data.get("is_active"):
            return None
        return data

    # ---------- cart ----------
    def _cart_query(self):
        return self._col(CART_ITEMS).where(filter=FieldFilter("user_id", "==", self._owner()))

    def upsert_cart_line(self, product_id: str, quantity: int,
                         cap: Optional[int] = None) -> Tuple[Dict[str, Any], bool, bool]:
        """
        Atomic insert-or-increment of the caller's line for `product_id`.
        With `cap`, an incremented quantity never exceeds it.
        Returns (line, created, clamped).
        """
        uid = self._owner()
        line_ref = self._col(CART_ITEMS).document(cart_line_id(uid, product_id))
        try:
            created, clamped = _upsert_line_txn(self._db.transaction(), line_ref, uid,
                                                product_id, quantity, cap)
            line = _doc_to_dict(line_ref.get())
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "upsert_cart_line") from exc
        return line, created, clamped

    def list_cart_lines(self) -> List[Dict[str, Any]]:
        try:
            rows = [_doc_to_dict(d) for d in self._cart_query().stream()]
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "list_cart_lines") from exc
        return sort_rows(rows, "created_at")

    def count_cart_lines(self) -> int:
        try:
            return _count(self._cart_query())
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "count_cart_lines") from exc

    def watch_cart_lines(self, on_change: Callable[[], None]):
        """
        Push subscription on the caller's cart rows. `on_change` runs on the
        listener thread for the initial snapshot and every change after it.
        Returns the watch handle; call `.unsubscribe()` to stop.
        """
        def _callback(docs, changes, read_time):
            on_change()
        return self._cart_query().on_snapshot(_callback)

    # ---------- orders ----------
    def list_orders(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Caller's orders, newest first."""
        base = self._col(ORDERS).where(filter=FieldFilter("user_id", "==", self._owner()))
        if status:
            base = base.where(filter=FieldFilter("status", "==", status))
        try:
            try:
                q = base.order_by("created_at", direction=firestore.Query.DESCENDING)
                return [_doc_to_dict(d) for d in q.stream()]
            except FailedPrecondition:
                logger.warning("Missing index for orders(status=%s); sorting in process", status)
                rows = [_doc_to_dict(d) for d in base.stream()]
                return sort_rows(rows, "created_at", descending=True)
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "list_orders") from exc

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        """Caller's order by id; None when missing or owned by someone else."""
        try:
            snap = self._col(ORDERS).document(order_id).get()
        except GoogleAPICallError as exc:
            raise RemoteQueryError(exc.message or str(exc), "get_order") from exc
        if not snap.exists:
            return None
        data = _doc_to_dict(snap)
        if data.get("user_id") != self._owner():
            return None
        return data
