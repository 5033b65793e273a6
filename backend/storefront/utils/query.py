"""
In-process counterparts of the Firestore query operators.

Used where Firestore cannot do the work itself: substring search has no
server-side operator, and a missing composite index forces ordering to happen
after the rows are fetched.
"""
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

# sort key -> (field, descending)
SORT_SPECS: Dict[str, Tuple[str, bool]] = {
    "newest": ("created_at", True),
    "name_asc": ("name", False),
    "price_asc": ("price", False),
    "price_desc": ("price", True),
}


def matches_text(row: Dict[str, Any], needle: str) -> bool:
    """Case-insensitive substring match on name OR description."""
    needle = (needle or "").strip().lower()
    if not needle:
        return True
    for field in ("name", "description"):
        value = row.get(field)
        if value and needle in str(value).lower():
            return True
    return False


def sort_rows(rows: Iterable[Dict[str, Any]], field: str, descending: bool = False) -> List[Dict[str, Any]]:
    """
    Orders rows by one field with the document id as tie-breaker, like Firestore
    (the id follows the direction of the last order_by). Rows without the field
    go last.
    """
    present, missing = [], []
    for row in rows:
        (missing if row.get(field) is None else present).append(row)
    present.sort(key=lambda r: (r[field], str(r.get("id", ""))), reverse=descending)
    missing.sort(key=lambda r: str(r.get("id", "")))
    return present + missing


def window(rows: List[Any], offset: int, limit: Optional[int]) -> List[Any]:
    if limit is None:
        return rows[offset:]
    return rows[offset:offset + limit]


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
