# storefront/utils/addressing.py
#
# Spreadsheet A1 addressing. Columns are 0-based here, rows are 1-based as
# they appear in the sheet.


def column_letter(index: int) -> str:
    """
    0 -> "A", 25 -> "Z", 26 -> "AA", 701 -> "ZZ", 702 -> "AAA".

    Bijective base-26: there is no letter for zero, so after taking the
    remainder we step down by one before the next digit.
    """
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")

    letters = ""
    n = index
    while n >= 0:
        letters = chr(ord("A") + n % 26) + letters
        n = n // 26 - 1
    return letters


def cell_ref(col: int, row: int) -> str:
    return f"{column_letter(col)}{row}"


def column_range(col: int, first_row: int, last_row: int) -> str:
    return f"{cell_ref(col, first_row)}:{cell_ref(col, last_row)}"


def sheet_range(sheet_title: str, a1: str = "A1") -> str:
    """Quote the tab title the way the Sheets API expects it."""
    escaped = sheet_title.replace("'", "''")
    return f"'{escaped}'!{a1}"
