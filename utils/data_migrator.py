"""
Normalization of stored records into the canonical domain types.

Orders live as rows with a JSON `items` column that was written by several
versions of the storefront; older carts carry `cardboardWeight` instead of
`netWeight`, Cyrillic unit labels, lowercase currencies, or no numbers at all.
Everything is brought into one shape here, once, when it is read.

Run as a script to migrate a CSV export of the legacy orders sheet into the
orders table.
"""

import csv
import json
import logging
import math
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from domain.models import (
    AGGREGATION_CARDBOARD,
    AGGREGATION_WEIGHT,
    STATUS_COMPLETED,
    STATUS_PROCESSING,
    UNIT_KG,
    UNIT_PCS,
    AggregationType,
    Order,
    OrderItem,
)

logger = logging.getLogger(__name__)

BATCH_SIZE = 500
DEFAULT_CURRENCY = "UAH"

_UNIT_ALIASES = {
    "kg": UNIT_KG,
    "кг": UNIT_KG,
    "pcs": UNIT_PCS,
    "шт": UNIT_PCS,
    "шт.": UNIT_PCS,
}

# date format the legacy sheet used (uk-UA locale string)
LEGACY_SHEET_DATE_FORMAT = "%d.%m.%Y, %H:%M:%S"


def to_number(value: Any) -> float:
    """
    Lenient number parsing. Anything that is not a finite number becomes 0.
    Accepts "6,5" as well as "6.5".
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(" ", "").replace(",", ".")
        if not text:
            return 0.0
        try:
            result = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return result if math.isfinite(result) else 0.0


def _first(raw: Mapping, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def normalize_unit(raw: Any, default: str = UNIT_KG) -> str:
    text = str(raw or "").strip()
    if not text:
        return default
    return _UNIT_ALIASES.get(text.lower(), text)


def normalize_currency(raw: Any) -> str:
    text = raw.strip().upper() if isinstance(raw, str) else ""
    return text or DEFAULT_CURRENCY


def normalize_aggregation(raw: Any) -> Optional[AggregationType]:
    text = str(raw or "").strip().lower()
    if text == AGGREGATION_CARDBOARD:
        return AGGREGATION_CARDBOARD
    if text == AGGREGATION_WEIGHT:
        return AGGREGATION_WEIGHT
    return None


def normalize_status(raw: Any) -> str:
    return STATUS_COMPLETED if str(raw or "").strip().lower() == STATUS_COMPLETED else STATUS_PROCESSING


def parse_order_date(raw: Any) -> Optional[datetime]:
    """Parse a stored timestamp; naive values are taken as UTC."""
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, LEGACY_SHEET_DATE_FORMAT)
            except ValueError:
                logger.warning("Unparseable order date %r", raw)
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def normalize_item(raw: Any) -> Optional[OrderItem]:
    if not isinstance(raw, Mapping):
        return None

    total_price = _first(raw, "totalPrice", "total_price")

    return OrderItem(
        product_id=str(_first(raw, "productId", "product_id", default="")),
        name=str(_first(raw, "name", default="")),
        quantity=to_number(raw.get("quantity")),
        price=to_number(raw.get("price")),
        price_per_unit=to_number(_first(raw, "pricePerUnit", "price_per_unit")),
        net_weight=to_number(_first(raw, "netWeight", "net_weight")),
        cardboard_weight=to_number(_first(raw, "cardboardWeight", "cardboard_weight")),
        unit_per_cardboard=to_number(_first(raw, "unitPerCardboard", "unit_per_cardboard")),
        # empty when missing, so the catalog product's unit is used instead
        unit=normalize_unit(raw.get("unit"), default=""),
        currency=normalize_currency(raw.get("currency")),
        aggregation_type=normalize_aggregation(
            _first(raw, "aggregationType", "aggregation_type", "agregationResult", "agregation_result")
        ),
        total_price=to_number(total_price) if total_price is not None else None,
    )


def normalize_items(raw: Any) -> List[OrderItem]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError:
            logger.warning("Order items are not valid JSON, ignoring them")
            return []
    if not isinstance(raw, list):
        return []
    items = (normalize_item(x) for x in raw)
    return [item for item in items if item is not None]


def normalize_order(raw: Mapping) -> Order:
    return Order(
        id=str(_first(raw, "id", default="")),
        customer_name=str(_first(raw, "customer_name", "customerName", default="")),
        customer_email=str(_first(raw, "customer_email", "customerEmail", default="")),
        items=normalize_items(raw.get("items")),
        total_price=to_number(_first(raw, "total_price", "totalPrice")),
        currency=normalize_currency(raw.get("currency")),
        status=normalize_status(raw.get("status")),
        order_date=parse_order_date(_first(raw, "order_date", "orderDate")),
    )


def order_to_row(order: Order) -> Dict[str, Any]:
    """Inverse of normalize_order, for writes to the orders table."""
    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "items": [item_to_json(item) for item in order.items],
        "items_summary": items_summary(order.items),
        "total_price": order.total_price,
        "currency": order.currency,
        "status": order.status,
        "order_date": order.order_date.isoformat() if order.order_date else None,
    }


def item_to_json(item: OrderItem) -> Dict[str, Any]:
    data = {
        "productId": item.product_id,
        "name": item.name,
        "quantity": item.quantity,
        "price": item.price,
        "pricePerUnit": item.price_per_unit,
        "netWeight": item.net_weight,
        "unitPerCardboard": item.unit_per_cardboard,
        "unit": item.unit,
        "currency": item.currency,
        "agregationResult": item.aggregation_type,
    }
    if item.total_price is not None:
        data["totalPrice"] = item.total_price
    return data


def items_summary(items: Iterable[OrderItem]) -> str:
    return "\n".join(f"{item.name} ({item.quantity:g} шт.)" for item in items)


# ---------------------------------------------------------------------------
# Legacy orders sheet -> orders table
# ---------------------------------------------------------------------------

# id, items JSON, market_name, email, items summary, total, currency, date, status
LEGACY_SHEET_COLUMNS = ["id", "items", "customer_name", "customer_email", "items_summary",
                        "total_price", "currency", "order_date", "status"]


def chunked(items: List[Dict], size: int) -> Iterable[List[Dict]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def read_legacy_sheet_csv(file_name: str) -> List[Order]:
    """
    Reads a CSV export of the legacy orders sheet (no header row or a header
    starting with "id") and returns normalized orders. Rows without an id are
    skipped, duplicates keep the first occurrence.
    """
    orders: List[Order] = []
    seen = set()

    with open(file_name, newline="", encoding="utf-8") as f:
        for line_no, values in enumerate(csv.reader(f), start=1):
            if not values or not values[0].strip():
                continue
            if line_no == 1 and values[0].strip().lower() == "id":
                continue

            row = dict(zip(LEGACY_SHEET_COLUMNS, (v.strip() for v in values)))
            order = normalize_order(row)
            if order.id in seen:
                logger.info("Skipping duplicate order %s on line %d", order.id, line_no)
                continue
            seen.add(order.id)
            orders.append(order)

    return orders


def load_orders_to_supabase(client, schema_name: str, orders: List[Order],
                            batch_size: int = BATCH_SIZE) -> Tuple[int, int]:
    """Upsert orders by id. Returns (rows_written, batches)."""
    rows = [order_to_row(o) for o in orders]
    total = 0
    batches = 0
    for batch in chunked(rows, batch_size):
        client.schema(schema_name).table("orders").upsert(batch, on_conflict="id").execute()
        total += len(batch)
        batches += 1
        logger.info("Upserted %d rows (running total: %d)", len(batch), total)
    return total, batches


if __name__ == "__main__":
    import sys

    from dotenv import load_dotenv
    from supabase import create_client

    logging.basicConfig(level=logging.INFO)
    load_dotenv()

    if len(sys.argv) != 2:
        raise SystemExit("usage: python -m utils.data_migrator <orders_sheet_export.csv>")

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")  # use SERVICE_ROLE for scripts
    if not supabase_url or not supabase_key:
        raise RuntimeError("Set SUPABASE_URL and SUPABASE_KEY in .env or environment variables")

    legacy_orders = read_legacy_sheet_csv(sys.argv[1])
    if not legacy_orders:
        logger.info("No valid rows to migrate.")
        raise SystemExit(0)

    written, _ = load_orders_to_supabase(
        create_client(supabase_url, supabase_key),
        os.getenv("SCHEMA", "public"),
        legacy_orders,
    )
    logger.info("Done: %d orders migrated from %s", written, sys.argv[1])
