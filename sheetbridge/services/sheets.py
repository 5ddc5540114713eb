import re
from datetime import datetime
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheetbridge.config import get_settings
from sheetbridge.exceptions import AuthenticationError, IntegrationError, RateLimitError
from sheetbridge.models.sheets import DEFAULT_SHEET_NAME, WriteRangeResponse

NEW_SHEET_ROW_COUNT = 100000
NEW_SHEET_COLUMN_COUNT = 26

_PLAIN_SHEET_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def _get_sheets_service():
    token = get_settings().gsheets_access_token
    if not token:
        raise AuthenticationError(
            "Access token is required. Set GSHEETS_ACCESS_TOKEN in .env or run sheetbridge-auth."
        )
    creds = Credentials(token=token)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def _handle_api_error(e: HttpError):
    if e.resp.status == 429:
        raise RateLimitError("Sheets API rate limit exceeded. Try again shortly.") from e
    if e.resp.status in (401, 403):
        raise AuthenticationError(
            "Sheets access token expired or revoked. Run sheetbridge-auth to obtain a new one."
        ) from e
    raise IntegrationError(f"Sheets API error: {e}") from e


def _find_key(node: Any, key: str) -> Any:
    """Depth-first search for the first value stored under ``key``."""
    if isinstance(node, dict):
        if key in node:
            return node[key]
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _find_key(child, key)
        if found is not None:
            return found
    return None


def a1_range(sheet_name: str, range_spec: str | None = None) -> str:
    """Build an A1 range such as ``Sheet1!A2:Z``, quoting names that need it."""
    title = sheet_name or DEFAULT_SHEET_NAME
    if not _PLAIN_SHEET_NAME.match(title):
        title = "'" + title.replace("'", "''") + "'"
    return f"{title}!{range_spec}" if range_spec else title


def default_spreadsheet_title(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return (
        f"New Spreadsheet [{now.year}-{now.month}-{now.day} "
        f"{now.hour}:{now.minute}:{now.second}]"
    )


def create_spreadsheet(title: str | None = None, sheet_name: str = DEFAULT_SHEET_NAME) -> str:
    """Create a spreadsheet with a single 100000x26 sheet and return its id."""
    service = _get_sheets_service()
    body = {
        "properties": {"title": title or default_spreadsheet_title()},
        "sheets": [
            {
                "properties": {
                    "title": sheet_name,
                    "gridProperties": {
                        "rowCount": NEW_SHEET_ROW_COUNT,
                        "columnCount": NEW_SHEET_COLUMN_COUNT,
                    },
                }
            }
        ],
    }
    try:
        result = service.spreadsheets().create(body=body).execute(num_retries=3)
    except HttpError as e:
        _handle_api_error(e)
    spreadsheet_id = _find_key(result, "spreadsheetId")
    if not isinstance(spreadsheet_id, str) or not spreadsheet_id:
        raise IntegrationError("Sheets API create response did not include a spreadsheetId")
    return spreadsheet_id


def read_range(spreadsheet_id: str, a1: str, fields: str | None = None) -> dict:
    """Read a range (e.g. 'Sheet1!A2:Z').

    Without ``fields`` this returns the values envelope (``{"range", "values"}``).
    With a field mask it returns the spreadsheet resource restricted to that
    mask, which is how cell metadata such as number formats is fetched.
    """
    service = _get_sheets_service()
    try:
        if fields:
            result = service.spreadsheets().get(
                spreadsheetId=spreadsheet_id, ranges=a1, fields=fields
            ).execute(num_retries=3)
        else:
            result = service.spreadsheets().values().get(
                spreadsheetId=spreadsheet_id, range=a1
            ).execute(num_retries=3)
    except HttpError as e:
        _handle_api_error(e)
    if not isinstance(result, dict):
        raise IntegrationError(f"Sheets API returned a non-object response for {a1}")
    return result


def write_range(spreadsheet_id: str, a1: str, body: dict) -> WriteRangeResponse:
    """Write a ``{"values": [[...]]}`` body starting at the given range."""
    service = _get_sheets_service()
    try:
        result = service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=a1,
            valueInputOption="USER_ENTERED",
            body=body,
        ).execute(num_retries=3)
    except HttpError as e:
        _handle_api_error(e)
    return WriteRangeResponse(
        spreadsheet_id=spreadsheet_id,
        updated_range=result.get("updatedRange", a1),
        updated_rows=result.get("updatedRows", 0),
        updated_columns=result.get("updatedColumns", 0),
        updated_cells=result.get("updatedCells", 0),
    )
