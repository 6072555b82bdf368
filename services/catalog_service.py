# services/catalog_service.py
"""
Product catalog read from Fakturownia, merged with local metadata
(image, aggregation type, position) kept in Supabase.
"""
import logging
import math
from typing import Any, Dict, List, Mapping, Optional

import requests

from config import Settings, load_settings, require_setting
from domain.errors import CatalogError
from domain.models import AGGREGATION_CARDBOARD, Product
from utils.data_migrator import normalize_aggregation, normalize_currency, normalize_unit, to_number

logger = logging.getLogger(__name__)

PER_PAGE = 50
WEBSITE_TAG = "website"
DEFAULT_CATEGORY = "Vegetables"


def api_base_url(username: str) -> str:
    return f"https://{username}.fakturownia.pl"


def map_fakturownia_product(fp: Mapping[str, Any], base_url: str) -> Optional[Product]:
    """
    Only products tagged "website" are sold in the shop. Fakturownia's
    `quantity` is the content of one box (e.g. 6.0 for a 6 kg box), and
    products are sold per box.
    """
    if WEBSITE_TAG not in (fp.get("tag_list") or []):
        return None

    price_per_unit = to_number(fp.get("price_net"))
    box_weight = to_number(fp.get("quantity"))

    return Product(
        id=str(fp.get("id")),
        name=str(fp.get("name") or ""),
        category=DEFAULT_CATEGORY,
        unit=normalize_unit(fp.get("quantity_unit")),
        net_weight=box_weight,
        unit_per_cardboard=1,
        price_per_unit=price_per_unit,
        price_per_cardboard=price_per_unit * box_weight,
        currency=normalize_currency(fp.get("currency") or "EUR"),
        active=not fp.get("disabled", False),
        image="",  # images only come from local metadata
        aggregation_type=AGGREGATION_CARDBOARD,
        external_url=f"{base_url}/products/{fp.get('id')}",
    )


def apply_metadata(product: Product, meta: Optional[Mapping[str, Any]]) -> Product:
    if not meta:
        return product
    if meta.get("image"):
        product.image = meta["image"]
    aggregation = normalize_aggregation(meta.get("agregation_result"))
    if aggregation:
        product.aggregation_type = aggregation
    product.position = int(to_number(meta.get("position")))
    return product


def _fetch_page(
        url: str,
        params: Dict[str, Any],
        *,
        timeout_seconds: float,
        max_retries: int,
) -> List[Dict[str, Any]]:
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            resp = requests.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout_seconds,
            )
            resp.raise_for_status()
            data = resp.json()
            return data if isinstance(data, list) else []
        except (requests.RequestException, ValueError) as e:
            last_error = e
            logger.warning(
                "Fakturownia page %s failed (%d/%d): %s",
                params.get("page"),
                attempt,
                max_retries,
                e,
            )

    raise CatalogError(f"Failed to fetch products from Fakturownia: {last_error}")


def get_catalog_products(
        settings: Optional[Settings] = None,
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
        max_retries: int = 3,
) -> List[Product]:
    """
    All website products, highest position first.

    Raises ConfigurationError without an API key and CatalogError when a page
    cannot be fetched.
    """
    settings = settings or load_settings()
    api_key = require_setting(settings, "fakturownia_api_key", "FAKTUROWNIA_API_KEY")
    base_url = api_base_url(settings.fakturownia_username)

    if metadata is None:
        from data_integrator import fetch_product_metadata

        ok, msg, metadata = fetch_product_metadata()
        if not ok:
            # the shop still works without local overrides
            logger.warning("Continuing without product metadata: %s", msg)
            metadata = {}

    products: List[Product] = []
    page = 1

    while True:
        data = _fetch_page(
            f"{base_url}/products.json",
            {"page": page, "per_page": PER_PAGE, "api_token": api_key},
            timeout_seconds=settings.catalog_timeout_seconds,
            max_retries=max_retries,
        )
        if not data:
            break

        for fp in data:
            product = map_fakturownia_product(fp, base_url)
            if product is not None:
                products.append(apply_metadata(product, metadata.get(product.id)))

        if len(data) < PER_PAGE:
            break
        page += 1

    logger.info("Loaded %d catalog products in %d page(s)", len(products), page)
    return sorted(products, key=lambda p: p.position, reverse=True)


def paginate_products(
        products: List[Product],
        page: int = 1,
        limit: int = 20,
        query: Optional[str] = None,
) -> Dict[str, Any]:
    """
    In-memory search (name or category) and paging.
    active_count is over the whole catalog, not the filtered one.
    """
    filtered = products
    if query:
        needle = query.lower()
        filtered = [
            p for p in products
            if needle in p.name.lower() or needle in p.category.lower()
        ]

    page = max(page, 1)
    offset = (page - 1) * limit

    return {
        "products": filtered[offset:offset + limit],
        "total_count": len(filtered),
        "active_count": sum(1 for p in products if p.active),
        "total_pages": math.ceil(len(filtered) / limit) if limit else 0,
        "current_page": page,
    }
