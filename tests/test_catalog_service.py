import pytest
import requests

from domain.errors import CatalogError, ConfigurationError
from services.catalog_service import (
    PER_PAGE,
    apply_metadata,
    get_catalog_products,
    map_fakturownia_product,
    paginate_products,
)
from tests.conftest import make_product, make_settings

BASE_URL = "https://shop.fakturownia.pl"


def _fp(pid, name="Tomatoes", tags=("website",), **kwargs):
    data = {
        "id": pid,
        "name": name,
        "tag_list": list(tags),
        "price_net": "2.5",
        "quantity": "6",
        "quantity_unit": "kg",
        "currency": "EUR",
    }
    data.update(kwargs)
    return data


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


@pytest.fixture
def pages(monkeypatch):
    """Serve Fakturownia pages from a dict {page_number: [products]}."""
    served = {}
    calls = []

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append({"url": url, "params": dict(params), "timeout": timeout})
        return FakeResponse(served.get(params["page"], []))

    monkeypatch.setattr(requests, "get", fake_get)
    return served, calls


def test_map_fakturownia_product():
    product = map_fakturownia_product(_fp(7, disabled=False), BASE_URL)

    assert product.id == "7"
    assert product.price_per_unit == 2.5
    assert product.net_weight == 6
    assert product.price_per_cardboard == 15
    assert product.unit_per_cardboard == 1
    assert product.aggregation_type == "cardboard"
    assert product.currency == "EUR"
    assert product.active is True
    assert product.external_url == f"{BASE_URL}/products/7"


def test_map_skips_untagged_and_reads_disabled():
    assert map_fakturownia_product(_fp(1, tags=("internal",)), BASE_URL) is None
    assert map_fakturownia_product(_fp(1, tag_list=None), BASE_URL) is None
    assert map_fakturownia_product(_fp(2, disabled=True), BASE_URL).active is False


def test_apply_metadata_overrides():
    product = map_fakturownia_product(_fp(7), BASE_URL)
    apply_metadata(product, {"image": "https://img/7.png", "agregation_result": "weight", "position": "3"})

    assert product.image == "https://img/7.png"
    assert product.aggregation_type == "weight"
    assert product.position == 3


def test_apply_metadata_ignores_unknown_aggregation():
    product = map_fakturownia_product(_fp(7), BASE_URL)
    apply_metadata(product, {"agregation_result": "", "position": None})
    assert product.aggregation_type == "cardboard"
    assert product.position == 0


def test_get_catalog_products_paginates(pages):
    served, calls = pages
    served[1] = [_fp(i, name=f"P{i}") for i in range(PER_PAGE)]
    served[2] = [_fp(100, name="Last"), _fp(101, tags=())]

    products = get_catalog_products(make_settings(), metadata={})

    assert len(products) == PER_PAGE + 1
    assert [c["params"]["page"] for c in calls] == [1, 2]
    assert calls[0]["url"] == f"{BASE_URL}/products.json"
    assert calls[0]["params"]["api_token"] == "api-key"
    assert calls[0]["timeout"] == 5.0


def test_get_catalog_products_sorted_by_position(pages):
    served, _ = pages
    served[1] = [_fp(1, name="Low"), _fp(2, name="High"), _fp(3, name="Mid")]
    metadata = {"1": {"position": 1}, "2": {"position": 9}, "3": {"position": 5}}

    products = get_catalog_products(make_settings(), metadata=metadata)

    assert [p.name for p in products] == ["High", "Mid", "Low"]


def test_get_catalog_products_retries_then_fails(monkeypatch):
    attempts = []

    def failing_get(url, params=None, headers=None, timeout=None):
        attempts.append(params["page"])
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "get", failing_get)

    with pytest.raises(CatalogError):
        get_catalog_products(make_settings(), metadata={}, max_retries=3)
    assert attempts == [1, 1, 1]


def test_get_catalog_products_recovers_after_retry(monkeypatch):
    responses = [FakeResponse([], status=502), FakeResponse([_fp(1)])]

    monkeypatch.setattr(requests, "get", lambda *a, **kw: responses.pop(0))

    products = get_catalog_products(make_settings(), metadata={})
    assert [p.id for p in products] == ["1"]


def test_get_catalog_products_requires_api_key():
    with pytest.raises(ConfigurationError, match="FAKTUROWNIA_API_KEY"):
        get_catalog_products(make_settings(fakturownia_api_key=None), metadata={})


def test_get_catalog_products_without_metadata_store(pages, monkeypatch):
    served, _ = pages
    served[1] = [_fp(1)]
    monkeypatch.setattr(
        "data_integrator.fetch_product_metadata", lambda: (False, "db down", {})
    )

    products = get_catalog_products(make_settings())
    assert [p.id for p in products] == ["1"]


def test_paginate_products():
    products = [
        make_product("Apples", category="Fruit"),
        make_product("Carrots", category="Vegetables", active=False),
        make_product("Pineapple", category="Fruit"),
    ]

    page = paginate_products(products, page=1, limit=2, query="APPLE")
    assert [p.name for p in page["products"]] == ["Apples", "Pineapple"]
    assert page["total_count"] == 2
    assert page["active_count"] == 2
    assert page["total_pages"] == 1

    by_category = paginate_products(products, page=2, limit=1, query="fruit")
    assert [p.name for p in by_category["products"]] == ["Pineapple"]
    assert by_category["current_page"] == 2

    assert paginate_products(products, page=0)["current_page"] == 1
