import datetime
from unittest.mock import MagicMock, Mock

import httplib2
import pytest
from googleapiclient.errors import HttpError

import data_integrator
import google_client
from domain.errors import CatalogError
from services.export_service import NO_ORDERS_MESSAGE, export_aggregation_to_sheets
from tests.conftest import make_item, make_order, make_settings

START = datetime.date(2026, 10, 12)
END = datetime.date(2026, 10, 19)
NOW = datetime.datetime(2026, 10, 19, 12, 30, tzinfo=datetime.timezone.utc)
TITLE = "Звіт 12.10 - 19.10 (19.10 14:30)"


@pytest.fixture
def sheets():
    sheets = MagicMock()
    sheets.spreadsheets.return_value.batchUpdate.return_value.execute.return_value = {
        "replies": [{"addSheet": {"properties": {"sheetId": 42}}}]
    }
    return sheets


@pytest.fixture
def completed_orders():
    return [
        make_order("o1", "Shop A", [make_item("Apples", 2), make_item("Boxes", 3)]),
        make_order("o2", "Shop B", [make_item("Boxes", 1)], status="processing"),
    ]


def _source(orders, calls=None):
    def order_source(start, end, status):
        if calls is not None:
            calls.append((start, end, status))
        return True, "", orders
    return order_source


def _export(sheets, orders, products, **kwargs):
    kwargs.setdefault("settings", make_settings())
    return export_aggregation_to_sheets(
        START, END,
        order_source=_source(orders),
        product_source=lambda: products,
        sheets=sheets,
        now=NOW,
        **kwargs,
    )


def test_export_writes_report(sheets, completed_orders, apples, boxes):
    calls = []
    result = export_aggregation_to_sheets(
        START, END,
        settings=make_settings(),
        order_source=_source(completed_orders, calls),
        product_source=lambda: [apples, boxes],
        sheets=sheets,
        now=NOW,
    )

    assert result.ok
    assert result.sheet_name == TITLE
    assert result.message == f'Звіт "{TITLE}" створено'
    assert result.sheet_url == "https://docs.google.com/spreadsheets/d/sheet-123/edit#gid=42"
    assert calls == [(START, END, "completed")]

    update = sheets.spreadsheets.return_value.values.return_value.update
    kwargs = update.call_args.kwargs
    assert kwargs["range"] == f"'{TITLE}'!A1"
    rows = kwargs["body"]["values"]
    # the processing order is left out
    assert [r[0] for r in rows] == ["order_id", "o1", "TOTAL"]
    assert rows[1][3:] == ["=E2+(F2*2)", 10, 3]


def test_no_orders_touches_no_sheet(sheets, apples):
    result = _export(sheets, [], [apples])

    assert not result.ok
    assert result.message == NO_ORDERS_MESSAGE
    sheets.spreadsheets.assert_not_called()


def test_only_processing_orders_counts_as_no_orders(sheets, apples):
    orders = [make_order("o1", "Shop A", [make_item("Apples", 1)], status="processing")]
    result = _export(sheets, orders, [apples])

    assert result.message == NO_ORDERS_MESSAGE
    sheets.spreadsheets.assert_not_called()


def test_missing_sheet_id_fails_before_reading_orders(sheets, apples):
    calls = []
    result = export_aggregation_to_sheets(
        START, END,
        settings=make_settings(orders_sheet_id=None),
        order_source=_source([], calls),
        product_source=lambda: [apples],
        sheets=sheets,
        now=NOW,
    )

    assert not result.ok
    assert "GOOGLE_SHEET_ORDERS_ID" in result.message
    assert calls == []


def test_order_source_failure_is_reported(sheets, apples):
    result = export_aggregation_to_sheets(
        START, END,
        settings=make_settings(),
        order_source=lambda start, end, status: (False, "db down", []),
        product_source=lambda: [apples],
        sheets=sheets,
        now=NOW,
    )

    assert result.ok is False
    assert result.message == "db down"
    sheets.spreadsheets.assert_not_called()


def test_catalog_failure_is_reported(sheets, completed_orders):
    def broken_catalog():
        raise CatalogError("catalog unavailable")

    result = export_aggregation_to_sheets(
        START, END,
        settings=make_settings(),
        order_source=_source(completed_orders),
        product_source=broken_catalog,
        sheets=sheets,
        now=NOW,
    )

    assert not result.ok
    assert result.message == "catalog unavailable"
    sheets.spreadsheets.assert_not_called()


def test_failed_write_rolls_back_sheet(sheets, completed_orders, apples, boxes):
    values = sheets.spreadsheets.return_value.values.return_value
    values.update.return_value.execute.side_effect = HttpError(
        Mock(status=500, reason="backend error"), b"backend error"
    )

    result = _export(sheets, completed_orders, [apples, boxes])

    assert not result.ok
    assert "write" in result.message
    batch_bodies = [c.kwargs["body"] for c in sheets.spreadsheets.return_value.batchUpdate.call_args_list]
    assert batch_bodies[-1] == {"requests": [{"deleteSheet": {"sheetId": 42}}]}


def test_failed_create_does_not_delete(sheets, completed_orders, apples, boxes):
    batch = sheets.spreadsheets.return_value.batchUpdate
    batch.return_value.execute.side_effect = TimeoutError("timed out")

    result = _export(sheets, completed_orders, [apples, boxes])

    assert not result.ok
    assert batch.call_count == 1


def test_dns_failure_during_write_rolls_back_sheet(sheets, completed_orders, apples, boxes):
    values = sheets.spreadsheets.return_value.values.return_value
    values.update.return_value.execute.side_effect = httplib2.ServerNotFoundError(
        "Unable to find the server at sheets.googleapis.com"
    )

    result = _export(sheets, completed_orders, [apples, boxes])

    assert not result.ok
    assert "sheets.googleapis.com" in result.message
    batch_bodies = [c.kwargs["body"] for c in sheets.spreadsheets.return_value.batchUpdate.call_args_list]
    assert batch_bodies[-1] == {"requests": [{"deleteSheet": {"sheetId": 42}}]}


def test_malformed_private_key_is_reported(monkeypatch, completed_orders, apples, boxes):
    def reject_key(info, scopes):
        raise ValueError("Could not deserialize key data")

    monkeypatch.setattr(google_client.service_account.Credentials, "from_service_account_info", reject_key)

    result = export_aggregation_to_sheets(
        START, END,
        settings=make_settings(),
        order_source=_source(completed_orders),
        product_source=lambda: [apples, boxes],
        now=NOW,
    )

    assert not result.ok
    assert "Invalid Google credentials" in result.message


def test_default_order_source_reads_oldest_first(monkeypatch, sheets, apples):
    calls = []

    def fake_get_orders(start, end, status, newest_first=True):
        calls.append((start, end, status, newest_first))
        return True, "", []

    monkeypatch.setattr(data_integrator, "get_orders", fake_get_orders)

    result = export_aggregation_to_sheets(
        START, END, settings=make_settings(), product_source=lambda: [apples], sheets=sheets, now=NOW
    )

    assert result.message == NO_ORDERS_MESSAGE
    assert calls == [(START, END, "completed", False)]
