# services/order_service.py
"""
Checkout: turn cart lines into an order, store it, and mirror it as a row in
the orders spreadsheet.
"""
import datetime
import json
import logging
import re
import uuid
from typing import List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from googleapiclient.discovery import Resource

from config import Settings, load_settings, require_setting
from domain.errors import CheckoutError, ConfigurationError, SheetWriteError
from domain.models import STATUS_PROCESSING, CartLine, Order, OrderItem
from services.pricing_service import cart_total, price_per_unit
from services.sheets_service import append_rows
from utils.addressing import sheet_range
from utils.data_migrator import DEFAULT_CURRENCY, item_to_json, items_summary

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# matches toLocaleString("uk-UA") as the sheet always had it
SHEET_DATE_FORMAT = "%d.%m.%Y, %H:%M:%S"


def build_order_items(lines: Sequence[CartLine]) -> List[OrderItem]:
    items: List[OrderItem] = []
    for line in lines:
        product = line.product
        if not product.active:
            raise CheckoutError(f'"{product.name}" is not available')
        if line.quantity <= 0:
            raise CheckoutError(f'Quantity for "{product.name}" must be positive')

        items.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                quantity=line.quantity,
                price=product.price_per_cardboard,
                price_per_unit=price_per_unit(product),
                net_weight=product.net_weight,
                unit_per_cardboard=product.unit_per_cardboard,
                unit=product.unit,
                currency=(product.currency or DEFAULT_CURRENCY).upper(),
                aggregation_type=product.aggregation_type,
                total_price=round(product.price_per_cardboard * line.quantity, 2),
            )
        )
    return items


def create_order(
        customer_name: str,
        customer_email: str,
        lines: Sequence[CartLine],
        *,
        now: Optional[datetime.datetime] = None,
        order_id: Optional[str] = None,
) -> Order:
    """Validate the checkout form and build a new `processing` order."""
    name = (customer_name or "").strip()
    email = (customer_email or "").strip()

    if not name:
        raise CheckoutError("Customer name is required")
    if not EMAIL_RE.match(email):
        raise CheckoutError("A valid e-mail address is required")
    if not lines:
        raise CheckoutError("The cart is empty")

    items = build_order_items(lines)

    return Order(
        id=order_id or str(uuid.uuid4()),
        customer_name=name,
        customer_email=email,
        items=items,
        total_price=cart_total(lines),
        currency=items[0].currency,
        status=STATUS_PROCESSING,
        order_date=now or datetime.datetime.now(datetime.timezone.utc),
    )


def order_sheet_row(order: Order, timezone: str = "Europe/Berlin") -> list:
    """id, items JSON, market_name, email, items summary, total, currency, date, status"""
    local = order.order_date.astimezone(ZoneInfo(timezone)) if order.order_date else None
    return [
        order.id,
        json.dumps([item_to_json(i) for i in order.items], ensure_ascii=False),
        order.customer_name,
        order.customer_email,
        items_summary(order.items),
        f"{order.total_price:g}",
        order.currency,
        local.strftime(SHEET_DATE_FORMAT) if local else "",
        order.status,
    ]


def _default_store(order: Order):
    from data_integrator import insert_order

    return insert_order(order)


def place_order(
        customer_name: str,
        customer_email: str,
        lines: Sequence[CartLine],
        *,
        settings: Optional[Settings] = None,
        store=None,
        sheets: Optional[Resource] = None,
        now: Optional[datetime.datetime] = None,
) -> Tuple[bool, str, Optional[Order]]:
    """
    Returns (ok, message, order).

    The database row is the order of record; a failed spreadsheet append is
    logged and does not fail the checkout.
    """
    settings = settings or load_settings()
    store = store or _default_store

    try:
        order = create_order(customer_name, customer_email, lines, now=now)
    except CheckoutError as e:
        return False, str(e), None

    ok, msg, _ = store(order)
    if not ok:
        logger.error("Order %s was not stored: %s", order.id, msg)
        return False, "Failed to create order", None

    logger.info("Order %s created for %s (%d items)", order.id, order.customer_name, len(order.items))

    try:
        spreadsheet_id = require_setting(settings, "orders_sheet_id", "GOOGLE_SHEET_ORDERS_ID")
        if sheets is None:
            from google_client import get_sheets_service

            sheets = get_sheets_service(settings)
        append_rows(
            sheets,
            spreadsheet_id,
            sheet_range(settings.orders_sheet_name, "A1"),
            [order_sheet_row(order, settings.report_timezone)],
        )
    except (ConfigurationError, SheetWriteError) as e:
        logger.warning("Order %s not mirrored to the orders sheet: %s", order.id, e)

    return True, "Order created", order
