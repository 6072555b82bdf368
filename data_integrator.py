import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from supabase import Client, create_client

from config import load_settings, require_setting
from domain.models import STATUS_COMPLETED, STATUS_PROCESSING, Order
from utils.data_migrator import normalize_order, order_to_row

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
METADATA_TABLE = "product_metadata"


@lru_cache(maxsize=1)
def get_client() -> Client:
    settings = load_settings()
    url = require_setting(settings, "supabase_url", "SUPABASE_URL")
    key = require_setting(settings, "supabase_key", "SUPABASE_KEY")
    return create_client(url, key)


def _table(name: str):
    return get_client().schema(load_settings().schema).table(name)


def date_range_bounds(start: date, end: date) -> Tuple[str, str]:
    """
    Inclusive range in UTC: the end date covers the whole day,
    up to 23:59:59.999.
    """
    start_dt = datetime.combine(start, time.min, tzinfo=timezone.utc)
    end_dt = datetime.combine(end, time(23, 59, 59, 999000), tzinfo=timezone.utc)
    return start_dt.isoformat(), end_dt.isoformat()


def get_orders(
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[str] = None,
        newest_first: bool = True,
) -> Tuple[bool, str, List[Order]]:
    """
    Orders by order_date (newest first unless newest_first=False), optionally
    limited to [start, end] and to one status.
    Returns (ok, message, orders)
    """
    try:
        query = _table(ORDERS_TABLE).select("*")

        if start and end:
            start_iso, end_iso = date_range_bounds(start, end)
            query = query.gte("order_date", start_iso).lte("order_date", end_iso)
        if status:
            query = query.eq("status", status)

        resp = query.order("order_date", desc=newest_first).execute()

        if getattr(resp, "error", None):
            return False, f"Fetch orders failed: {resp.error}", []

        orders = [normalize_order(row) for row in (resp.data or [])]
        return True, "Fetched", orders

    except Exception as e:
        logger.error("Failed to get orders: %s", e)
        return False, str(e), []


def get_paginated_orders(
        page: int = 1,
        limit: int = 20,
        start: Optional[date] = None,
        end: Optional[date] = None,
) -> Tuple[bool, str, Dict[str, Any]]:
    """
    Returns (ok, message, {"orders", "total_count", "total_pages", "current_page"})
    """
    empty = {"orders": [], "total_count": 0, "total_pages": 0, "current_page": 1}
    page = max(page, 1)
    offset = (page - 1) * limit

    try:
        query = _table(ORDERS_TABLE).select("*", count="exact")
        if start and end:
            start_iso, end_iso = date_range_bounds(start, end)
            query = query.gte("order_date", start_iso).lte("order_date", end_iso)

        resp = (
            query
            .order("order_date", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )

        if getattr(resp, "error", None):
            return False, f"Fetch orders failed: {resp.error}", empty

        total_count = resp.count or 0
        return True, "Fetched", {
            "orders": [normalize_order(row) for row in (resp.data or [])],
            "total_count": total_count,
            "total_pages": math.ceil(total_count / limit) if limit else 0,
            "current_page": page,
        }

    except Exception as e:
        logger.error("Failed to get paginated orders: %s", e)
        return False, str(e), empty


def _count_since(since: Optional[datetime]) -> int:
    query = _table(ORDERS_TABLE).select("id", count="exact")
    if since is not None:
        query = query.gte("order_date", since.isoformat())
    resp = query.limit(1).execute()
    if getattr(resp, "error", None):
        raise Exception(resp.error)
    return resp.count or 0


def get_order_stats(now: Optional[datetime] = None) -> Tuple[bool, str, Dict[str, int]]:
    """Number of orders in total, and in the last day, 7 days and 30 days."""
    now = now or datetime.now(timezone.utc)
    try:
        stats = {
            "total": _count_since(None),
            "day": _count_since(now - timedelta(days=1)),
            "week": _count_since(now - timedelta(days=7)),
            "month": _count_since(now - timedelta(days=30)),
        }
        return True, "Fetched", stats
    except Exception as e:
        logger.error("Failed to get order stats: %s", e)
        return False, str(e), {"total": 0, "day": 0, "week": 0, "month": 0}


def insert_order(order: Order) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
    try:
        resp = _table(ORDERS_TABLE).insert(order_to_row(order)).execute()

        if getattr(resp, "error", None):
            return False, f"Insert failed: {resp.error}", None

        inserted = resp.data[0] if resp.data else None
        return True, "Inserted", inserted

    except Exception as e:
        logger.error("Failed to insert order %s: %s", order.id, e)
        return False, str(e), None


def update_order_status(order_id: str, status: str) -> Tuple[bool, str]:
    if status not in (STATUS_PROCESSING, STATUS_COMPLETED):
        return False, f"Invalid status: {status}"

    try:
        resp = _table(ORDERS_TABLE).update({"status": status}).eq("id", order_id).execute()

        if getattr(resp, "error", None):
            return False, f"Update failed: {resp.error}"

        return True, "Updated"

    except Exception as e:
        logger.error("Failed to update order status: %s", e)
        return False, "Не вдалося оновити статус замовлення"


def delete_order(order_id: str) -> Tuple[bool, str]:
    try:
        resp = _table(ORDERS_TABLE).delete().eq("id", order_id).execute()

        if getattr(resp, "error", None):
            return False, f"Delete failed: {resp.error}"

        return True, "Deleted"

    except Exception as e:
        logger.error("Failed to delete order: %s", e)
        return False, "Не вдалося видалити замовлення"


def fetch_product_metadata() -> Tuple[bool, str, Dict[str, Dict[str, Any]]]:
    """
    Local overrides for catalog products.
    Returns (ok, message, {product_id: {"image", "agregation_result", "position"}})
    """
    try:
        resp = _table(METADATA_TABLE).select("id, image, agregation_result, position").execute()

        if getattr(resp, "error", None):
            return False, f"Fetch metadata failed: {resp.error}", {}

        return True, "Fetched", {str(row["id"]): row for row in (resp.data or [])}

    except Exception as e:
        logger.error("Failed to fetch product metadata: %s", e)
        return False, str(e), {}


def update_product_metadata(
        product_id: str,
        image: Optional[str] = None,
        aggregation_type: Optional[str] = None,
        position: Optional[int] = None,
) -> Tuple[bool, str]:
    payload: Dict[str, Any] = {
        "id": product_id,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    if image is not None:
        payload["image"] = image
    if aggregation_type is not None:
        payload["agregation_result"] = aggregation_type
    if position is not None:
        payload["position"] = position

    try:
        resp = _table(METADATA_TABLE).upsert(payload, on_conflict="id").execute()

        if getattr(resp, "error", None):
            return False, f"Update metadata failed: {resp.error}"

        return True, "Updated"

    except Exception as e:
        logger.error("Failed to update product metadata: %s", e)
        return False, "Failed to update metadata"
