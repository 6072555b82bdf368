# services/report_service.py

import datetime
from typing import List
from zoneinfo import ZoneInfo

from domain.models import (
    AGGREGATION_CARDBOARD,
    CellFormat,
    CellValue,
    Pivot,
    ReportGrid,
)
from utils.addressing import cell_ref, column_range

FIXED_HEADERS = ["order_id", "email", "market_name", "weight"]
WEIGHT_COL = 3
FIRST_PRODUCT_COL = 4

HEADER_ROWS = 1
FIRST_DATA_ROW = 2  # 1-based, as in the sheet

KG_PATTERN = '0 "kg"'
COUNT_PATTERN = "0"
ZEBRA_GREY = (0.96, 0.96, 0.96)
EMPHASIS_FONT_SIZE = 12

TOTAL_LABEL = "TOTAL"


def build_report_title(
        start: datetime.date,
        end: datetime.date,
        exported_at: datetime.datetime,
        timezone: str = "Europe/Berlin",
) -> str:
    """
    "Звіт 01.10 - 07.10 (07.10 18:45)"
    The export time makes repeated exports of the same range unique.
    """
    local = exported_at.astimezone(ZoneInfo(timezone))
    return (
        f"Звіт {start:%d.%m} - {end:%d.%m} "
        f"({local:%d.%m} {local:%H:%M})"
    )


def _format_number(value: float) -> str:
    # full precision, never exponent form: the formula must equal packs x weight
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def row_weight_formula(pivot: Pivot, sheet_row: int) -> str:
    """
    =E2+(F2*6)+G2...
    Weight columns already hold mass (multiplier 1); cardboard columns hold a
    pack count and are multiplied by the pack weight.
    """
    parts: List[str] = []
    for idx, key in enumerate(pivot.sorted_keys):
        ref = cell_ref(FIRST_PRODUCT_COL + idx, sheet_row)
        multiplier = column_multiplier(pivot, key)
        if multiplier != 1:
            parts.append(f"({ref}*{_format_number(multiplier)})")
        else:
            parts.append(ref)

    return f"={'+'.join(parts)}" if parts else "=0"


def column_multiplier(pivot: Pivot, key: str) -> float:
    if pivot.column_types.get(key) == AGGREGATION_CARDBOARD:
        return pivot.column_pack_weights.get(key, 1.0) or 1.0
    return 1.0


def _cell_number(value: float) -> CellValue:
    return int(value) if float(value).is_integer() else value


def build_report_grid(pivot: Pivot, title: str) -> ReportGrid:
    """
    Header row, one row per order (input order kept), a TOTAL row, and the
    formatting instructions that go with them.
    """
    header: List[CellValue] = [*FIXED_HEADERS, *pivot.sorted_keys]
    rows: List[List[CellValue]] = [header]

    for i, order_row in enumerate(pivot.order_rows):
        sheet_row = FIRST_DATA_ROW + i
        order = order_row.order
        row: List[CellValue] = [
            order.id,
            order.customer_email,
            order.customer_name,
            row_weight_formula(pivot, sheet_row),
        ]
        for key in pivot.sorted_keys:
            cell = order_row.cells.get(key)
            row.append(_cell_number(cell.value) if cell is not None else 0)
        rows.append(row)

    n_data = len(pivot.order_rows)
    last_data_row = FIRST_DATA_ROW + n_data - 1

    footer: List[CellValue] = [TOTAL_LABEL, "", ""]
    for col in range(WEIGHT_COL, len(header)):
        footer.append(f"=SUM({column_range(col, FIRST_DATA_ROW, last_data_row)})")
    rows.append(footer)

    return ReportGrid(title=title, rows=rows, formats=build_formats(pivot, len(header), n_data))


def build_formats(pivot: Pivot, n_cols: int, n_data: int) -> List[CellFormat]:
    """
    Row/column indexes are 0-based and end-exclusive here; the header is row 0,
    data rows are 1..n_data, the TOTAL row is n_data + 1.
    """
    data_start = HEADER_ROWS
    total_row = HEADER_ROWS + n_data
    rows_end = total_row + 1

    formats: List[CellFormat] = [
        CellFormat(data_start, rows_end, WEIGHT_COL, WEIGHT_COL + 1, number_pattern=KG_PATTERN),
    ]

    for idx, key in enumerate(pivot.sorted_keys):
        col = FIRST_PRODUCT_COL + idx
        is_count = pivot.column_types.get(key) == AGGREGATION_CARDBOARD
        formats.append(
            CellFormat(data_start, rows_end, col, col + 1,
                       number_pattern=COUNT_PATTERN if is_count else KG_PATTERN)
        )

    formats.append(CellFormat(0, HEADER_ROWS, 0, n_cols, bold=True))
    formats.append(
        CellFormat(data_start, rows_end, WEIGHT_COL, WEIGHT_COL + 1,
                   bold=True, font_size=EMPHASIS_FONT_SIZE)
    )

    for i in range(n_data):
        if i % 2 == 1:
            row = data_start + i
            formats.append(CellFormat(row, row + 1, 0, n_cols, background=ZEBRA_GREY))

    formats.append(
        CellFormat(total_row, rows_end, 0, n_cols, bold=True, font_size=EMPHASIS_FONT_SIZE)
    )
    return formats

