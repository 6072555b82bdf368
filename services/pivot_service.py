# services/pivot_service.py
"""
Pivot of orders into a customer x product matrix.

Columns come from the catalog, not from what was sold, so a product without
sales still gets a (zero) column. Each order item is resolved to a catalog
product by id first and by name second. Items that resolve to a name that is
not a catalog column are dropped.

A cell is either Mass (weight-type products: packs x weight per pack) or
PackCount (cardboard-type products: the raw number of packs, with the pack
weight carried along so the mass can be recovered later).
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from domain.models import (
    AGGREGATION_CARDBOARD,
    AGGREGATION_WEIGHT,
    UNIT_KG,
    AggregationType,
    CustomerRow,
    Mass,
    Order,
    OrderItem,
    OrderRow,
    PackCount,
    Pivot,
    PivotCell,
    PivotEntry,
    Product,
    ProductTotal,
    RevenueLine,
    RevenueSummary,
)
from utils.collation import sort_uk, uk_sort_key

logger = logging.getLogger(__name__)

WeightAccessor = Callable[[OrderItem, Optional[Product]], float]


# ---------------------------------------------------------------------------
# Fallback chains
# ---------------------------------------------------------------------------

def _item_net_weight(item: OrderItem, product: Optional[Product]) -> float:
    return item.net_weight


def _item_cardboard_weight(item: OrderItem, product: Optional[Product]) -> float:
    return item.cardboard_weight


def _product_net_weight(item: OrderItem, product: Optional[Product]) -> float:
    return product.net_weight if product else 0.0


def _pure_kg_default(item: OrderItem, product: Optional[Product]) -> float:
    # a product sold by the kg with no recorded pack weight counts 1 kg per pack
    if product is not None and product.net_weight == 0 and product.unit == UNIT_KG:
        return 1.0
    return 0.0


WEIGHT_PER_PACK_CHAIN: Tuple[WeightAccessor, ...] = (
    _item_net_weight,
    _item_cardboard_weight,
    _product_net_weight,
    _pure_kg_default,
)

PackWeightAccessor = Callable[[Product], float]

PACK_WEIGHT_CHAIN: Tuple[PackWeightAccessor, ...] = (
    lambda p: p.net_weight,
    lambda p: p.unit_per_cardboard,
    lambda p: 1.0,
)


def weight_per_pack(item: OrderItem, product: Optional[Product]) -> float:
    """First non-zero value of WEIGHT_PER_PACK_CHAIN, else 0."""
    for accessor in WEIGHT_PER_PACK_CHAIN:
        value = accessor(item, product)
        if value:
            return value
    return 0.0


def pack_weight(product: Optional[Product]) -> float:
    """Mass of one pack of a cardboard-type product; never 0."""
    if product is None:
        return 1.0
    for accessor in PACK_WEIGHT_CHAIN:
        value = accessor(product)
        if value:
            return value
    return 1.0


# ---------------------------------------------------------------------------
# Product lookup
# ---------------------------------------------------------------------------

class ProductLookup:
    """
    Resolves an order item to a catalog product: by product id, then by name.

    Two products sharing a name resolve to the one listed last in the catalog.
    """

    def __init__(self, products: Iterable[Product]):
        self.by_id: Dict[str, Product] = {}
        self.by_name: Dict[str, Product] = {}
        for product in products:
            self.by_id[product.id] = product
            self.by_name[product.name] = product

    def resolve(self, item: OrderItem) -> Optional[Product]:
        product = self.by_id.get(item.product_id) if item.product_id else None
        if product is None and item.name:
            product = self.by_name.get(item.name)
        return product

    def key_for(self, item: OrderItem) -> Tuple[str, Optional[Product]]:
        product = self.resolve(item)
        return (product.name if product else item.name), product

    def column(self, key: str) -> Optional[Product]:
        return self.by_name.get(key)

    @property
    def header_keys(self) -> set:
        return set(self.by_name)


def sort_header_keys(keys: Iterable[str], preferred_order: Sequence[str] = ()) -> List[str]:
    """
    Ukrainian collation. Names listed in preferred_order, if any, come first
    in that order.
    """
    if not preferred_order:
        return sort_uk(set(keys))

    rank = {name: i for i, name in enumerate(preferred_order)}
    return sorted(
        set(keys),
        key=lambda name: (0, rank[name], ()) if name in rank else (1, 0, uk_sort_key(name)),
    )


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------

def aggregation_type_of(product: Optional[Product]) -> AggregationType:
    if product is not None and product.aggregation_type == AGGREGATION_CARDBOARD:
        return AGGREGATION_CARDBOARD
    return AGGREGATION_WEIGHT


def empty_cell(product: Optional[Product]) -> PivotCell:
    if aggregation_type_of(product) == AGGREGATION_CARDBOARD:
        return PackCount(0.0, pack_weight(product))
    return Mass(0.0)


def item_contribution(item: OrderItem, product: Optional[Product]) -> float:
    """What one item adds to its cell: packs for cardboard, mass otherwise."""
    if aggregation_type_of(product) == AGGREGATION_CARDBOARD:
        return item.quantity
    return item.quantity * weight_per_pack(item, product)


# ---------------------------------------------------------------------------
# Pivot
# ---------------------------------------------------------------------------

def build_pivot(
        orders: Sequence[Order],
        products: Sequence[Product],
        preferred_order: Sequence[str] = (),
) -> Pivot:
    """
    Build the customer matrix, the per-order rows and the per-product totals.

    `orders` must already be filtered to the wanted date range / status.
    """
    lookup = ProductLookup(products)
    header_keys = lookup.header_keys
    sorted_keys = sort_header_keys(header_keys, preferred_order)

    customers: Dict[str, CustomerRow] = {}
    order_rows: List[OrderRow] = []
    dropped = 0

    for order in orders:
        customer = customers.get(order.customer_name)
        if customer is None:
            customer = CustomerRow(customer_name=order.customer_name, email=order.customer_email)
            customers[order.customer_name] = customer

        row = OrderRow(order=order)

        for item in order.items:
            key, product = lookup.key_for(item)
            if key not in header_keys:
                dropped += 1
                continue

            amount = item_contribution(item, product)
            column_product = lookup.column(key)

            cell = row.cells.get(key) or empty_cell(column_product)
            row.cells[key] = cell.add(amount)

            entry = customer.products.get(key)
            if entry is None:
                unit = item.unit or (column_product.unit if column_product else UNIT_KG)
                entry = PivotEntry(packs=0.0, cell=empty_cell(column_product), unit=unit)
                customer.products[key] = entry
            entry.packs += item.quantity
            entry.cell = entry.cell.add(amount)

        order_rows.append(row)

    if dropped:
        logger.info("Dropped %d order items without a catalog column", dropped)

    totals: Dict[str, ProductTotal] = {}
    for key in sorted_keys:
        product = lookup.column(key)
        total = ProductTotal(name=key, unit=product.unit if product else UNIT_KG)
        for customer in customers.values():
            entry = customer.products.get(key)
            if entry is not None:
                total.packs += entry.packs
                total.weight += entry.weight
        totals[key] = total

    return Pivot(
        sorted_keys=sorted_keys,
        customers=list(customers.values()),
        order_rows=order_rows,
        totals=totals,
        column_types={key: aggregation_type_of(lookup.column(key)) for key in sorted_keys},
        column_pack_weights={key: pack_weight(lookup.column(key)) for key in sorted_keys},
    )


def summarize_revenue(orders: Sequence[Order]) -> RevenueSummary:
    """
    Packs and revenue per product over all items of the given orders,
    grouped by product id (or name when the item has no id).
    """
    lines: Dict[str, RevenueLine] = {}
    customers = set()

    for order in orders:
        customers.add(order.customer_name)
        for item in order.items:
            key = item.product_id or item.name
            line = lines.get(key)
            if line is None:
                line = RevenueLine(name=item.name, total_packs=0.0, total_revenue=0.0,
                                   currency=order.currency or "EUR")
                lines[key] = line
            line.total_packs += item.quantity
            line.total_revenue += item.total_price if item.total_price else item.price * item.quantity

    return RevenueSummary(lines=list(lines.values()), shops=len(customers), products=len(lines))
