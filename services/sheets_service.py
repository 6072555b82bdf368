# services/sheets_service.py
import logging
import socket
from typing import Any, Dict, List, Sequence

import httplib2
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from domain.errors import SheetWriteError
from domain.models import CellFormat, CellValue

logger = logging.getLogger(__name__)

USER_ENTERED = "USER_ENTERED"

# network failures the API client lets through as-is; DNS errors are HttpLib2Error
_TRANSPORT_ERRORS = (HttpError, httplib2.HttpLib2Error, socket.timeout, TimeoutError, ConnectionError)


def _execute(request, action: str) -> Dict[str, Any]:
    try:
        return request.execute() or {}
    except _TRANSPORT_ERRORS as e:
        logger.error("Sheets %s failed: %s", action, e)
        raise SheetWriteError(f"Google Sheets {action} failed: {e}") from e


def sheet_url(spreadsheet_id: str, sheet_id: int) -> str:
    return f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit#gid={sheet_id}"


def create_sheet(sheets: Resource, spreadsheet_id: str, title: str) -> int:
    """Add a tab and return its numeric sheetId."""
    resp = _execute(
        sheets.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
        ),
        "create sheet",
    )

    replies = resp.get("replies") or [{}]
    sheet_id = replies[0].get("addSheet", {}).get("properties", {}).get("sheetId")
    if sheet_id is None:
        raise SheetWriteError(f'Google Sheets did not return an id for sheet "{title}"')

    logger.info('Created sheet "%s" (sheetId=%s)', title, sheet_id)
    return int(sheet_id)


def delete_sheet(sheets: Resource, spreadsheet_id: str, sheet_id: int) -> None:
    _execute(
        sheets.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": [{"deleteSheet": {"sheetId": sheet_id}}]},
        ),
        "delete sheet",
    )
    logger.info("Deleted sheet %s", sheet_id)


def replace_sheet_content(
    sheets: Resource,
    spreadsheet_id: str,
    a1_range: str,
    rows: Sequence[Sequence[CellValue]],
) -> None:
    """Overwrite the range starting at a1_range; formulas are evaluated."""
    _execute(
        sheets.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=a1_range,
            valueInputOption=USER_ENTERED,
            body={"values": [list(r) for r in rows]},
        ),
        "write",
    )
    logger.info("Wrote %d rows to %s", len(rows), a1_range)


def append_rows(
    sheets: Resource,
    spreadsheet_id: str,
    a1_range: str,
    rows: Sequence[Sequence[CellValue]],
) -> None:
    _execute(
        sheets.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=a1_range,
            valueInputOption=USER_ENTERED,
            body={"values": [list(r) for r in rows]},
        ),
        "append",
    )


# ---------- formatting ----------

def format_request(sheet_id: int, fmt: CellFormat) -> Dict[str, Any]:
    """Translate one CellFormat into a repeatCell request."""
    grid_range: Dict[str, Any] = {
        "sheetId": sheet_id,
        "startRowIndex": fmt.start_row,
        "startColumnIndex": fmt.start_col,
        "endColumnIndex": fmt.end_col,
    }
    if fmt.end_row is not None:
        grid_range["endRowIndex"] = fmt.end_row

    user_format: Dict[str, Any] = {}
    fields: List[str] = []

    if fmt.number_pattern is not None:
        user_format["numberFormat"] = {"type": "NUMBER", "pattern": fmt.number_pattern}
        fields.append("userEnteredFormat.numberFormat")

    if fmt.bold or fmt.font_size:
        text_format: Dict[str, Any] = {"bold": fmt.bold}
        if fmt.font_size:
            text_format["fontSize"] = fmt.font_size
            fields.append("userEnteredFormat.textFormat(bold,fontSize)")
        else:
            fields.append("userEnteredFormat.textFormat.bold")
        user_format["textFormat"] = text_format

    if fmt.background is not None:
        red, green, blue = fmt.background
        user_format["backgroundColor"] = {"red": red, "green": green, "blue": blue}
        fields.append("userEnteredFormat.backgroundColor")

    return {
        "repeatCell": {
            "range": grid_range,
            "cell": {"userEnteredFormat": user_format},
            "fields": ",".join(fields),
        }
    }


def format_sheet_cells(
    sheets: Resource,
    spreadsheet_id: str,
    sheet_id: int,
    formats: Sequence[CellFormat],
) -> None:
    requests = [format_request(sheet_id, f) for f in formats]
    if not requests:
        return

    _execute(
        sheets.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": requests},
        ),
        "format",
    )
