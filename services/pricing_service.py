# services/pricing_service.py

from dataclasses import dataclass
from typing import Iterable

from domain.models import UNIT_PCS, CartLine, Product
from utils.formatting import format_kg, format_money


@dataclass
class PackQuote:
    """What the shop shows for `packs` packs of one product."""
    packs: int
    price_per_unit: float
    total_kg: float
    total_pieces: float
    total_money: float
    has_package: bool
    has_per_unit: bool


def price_per_unit(product: Product) -> float:
    """Explicit unit price, else pack price divided by pack weight."""
    if product.price_per_unit > 0:
        return product.price_per_unit
    if product.net_weight > 0 and product.price_per_cardboard > 0:
        return product.price_per_cardboard / product.net_weight
    return 0.0


def quote(product: Product, packs: int = 1) -> PackQuote:
    units_per_package = product.unit_per_cardboard or 1
    total_pieces = 0.0
    if product.unit == UNIT_PCS and product.unit_per_cardboard > 0:
        total_pieces = product.unit_per_cardboard * packs

    unit_price = price_per_unit(product)
    return PackQuote(
        packs=packs,
        price_per_unit=unit_price,
        total_kg=product.net_weight * packs if product.net_weight > 0 else 0.0,
        total_pieces=total_pieces,
        total_money=product.price_per_cardboard * packs if product.price_per_cardboard > 0 else 0.0,
        has_package=(product.net_weight > 0 or units_per_package > 1) and product.price_per_cardboard > 0,
        has_per_unit=unit_price > 0,
    )


def pack_label(product: Product) -> str:
    """e.g. "6 kg", "12 pcs", "1 kg" for loose goods."""
    if product.net_weight > 0:
        return f"{format_kg(product.net_weight)} {product.unit}"
    return f"{format_kg(product.unit_per_cardboard or 1)} {product.unit}"


def line_total(line: CartLine) -> float:
    return line.product.price_per_cardboard * line.quantity


def cart_total(lines: Iterable[CartLine]) -> float:
    # rounded to cents so 21.939999... shows as 21.94
    return round(sum(line_total(line) for line in lines), 2)


def describe_quote(product: Product, packs: int = 1) -> str:
    q = quote(product, packs)
    parts = [format_money(q.total_money, product.currency)]
    if q.total_kg:
        parts.append(f"{format_kg(q.total_kg)} {product.unit}")
    elif q.total_pieces:
        parts.append(f"{format_kg(q.total_pieces)} шт")
    if q.has_per_unit:
        parts.append(f"{format_money(q.price_per_unit, product.currency)} / {product.unit}")
    return " · ".join(parts)
