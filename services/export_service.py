# services/export_service.py

import datetime
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import Resource

from config import Settings, load_settings, require_setting
from domain.errors import CatalogError, ConfigurationError, SheetWriteError
from domain.models import STATUS_COMPLETED, ExportResult, Order, Product, ReportGrid
from services.pivot_service import build_pivot
from services.report_service import build_report_grid, build_report_title
from services.sheets_service import (
    create_sheet,
    delete_sheet,
    format_sheet_cells,
    replace_sheet_content,
    sheet_url,
)
from utils.addressing import sheet_range

logger = logging.getLogger(__name__)

NO_ORDERS_MESSAGE = "Замовлень не знайдено за цей період"

OrderSource = Callable[[datetime.date, datetime.date, Optional[str]], Tuple[bool, str, List[Order]]]
ProductSource = Callable[[], Sequence[Product]]


def write_report(sheets: Resource, spreadsheet_id: str, grid: ReportGrid) -> int:
    """
    Create a tab named after the report, fill it, format it.

    The tab is removed again if filling or formatting fails, so a failed
    export does not leave a half-written sheet behind.
    Returns the numeric sheetId.
    """
    sheet_id = create_sheet(sheets, spreadsheet_id, grid.title)

    try:
        replace_sheet_content(sheets, spreadsheet_id, sheet_range(grid.title, "A1"), grid.rows)
        format_sheet_cells(sheets, spreadsheet_id, sheet_id, grid.formats)
    except SheetWriteError:
        logger.warning('Rolling back sheet "%s" (sheetId=%s)', grid.title, sheet_id)
        try:
            delete_sheet(sheets, spreadsheet_id, sheet_id)
        except SheetWriteError as cleanup_error:
            logger.error("Rollback of sheet %s failed: %s", sheet_id, cleanup_error)
        raise

    return sheet_id


def _default_order_source(start, end, status):
    from data_integrator import get_orders

    # sheet rows go oldest first, in the order the orders came in
    return get_orders(start, end, status, newest_first=False)


def export_aggregation_to_sheets(
        start: datetime.date,
        end: datetime.date,
        *,
        settings: Optional[Settings] = None,
        order_source: Optional[OrderSource] = None,
        product_source: Optional[ProductSource] = None,
        sheets: Optional[Resource] = None,
        now: Optional[datetime.datetime] = None,
) -> ExportResult:
    """
    Build the aggregation report for completed orders in [start, end] and
    write it to a new tab of the orders spreadsheet.

    Never raises for expected failures; the result carries the message shown
    to the operator.
    """
    settings = settings or load_settings()
    order_source = order_source or _default_order_source

    try:
        spreadsheet_id = require_setting(settings, "orders_sheet_id", "GOOGLE_SHEET_ORDERS_ID")

        ok, msg, orders = order_source(start, end, STATUS_COMPLETED)
        if not ok:
            return ExportResult(ok=False, message=msg)

        orders = [o for o in orders if o.status == STATUS_COMPLETED]
        if not orders:
            logger.info("No completed orders between %s and %s", start, end)
            return ExportResult(ok=False, message=NO_ORDERS_MESSAGE)

        if product_source is None:
            from services.catalog_service import get_catalog_products

            products = get_catalog_products(settings)
        else:
            products = product_source()

        pivot = build_pivot(orders, products)
        now = now or datetime.datetime.now(datetime.timezone.utc)
        title = build_report_title(start, end, now, settings.report_timezone)
        grid = build_report_grid(pivot, title)

        if sheets is None:
            from google_client import get_sheets_service

            sheets = get_sheets_service(settings)

        sheet_id = write_report(sheets, spreadsheet_id, grid)

    except (ConfigurationError, CatalogError, SheetWriteError) as e:
        logger.error("Export failed: %s", e)
        return ExportResult(ok=False, message=str(e))
    except (GoogleAuthError, OSError) as e:
        logger.error("Export failed talking to Google: %s", e)
        return ExportResult(ok=False, message=str(e))

    logger.info('Exported %d orders to "%s"', len(orders), title)
    return ExportResult(
        ok=True,
        message=f'Звіт "{title}" створено',
        sheet_name=title,
        sheet_url=sheet_url(spreadsheet_id, sheet_id),
    )
