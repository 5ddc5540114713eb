from typing import Any

from fastmcp import FastMCP

from sheetbridge import auth
from sheetbridge.exceptions import (
    AuthenticationError,
    IntegrationError,
    InvalidArgumentError,
    ParseError,
    RateLimitError,
    SessionStateError,
)
from sheetbridge.services import reader as reader_service
from sheetbridge.services import writer as writer_service

mcp = FastMCP("Sheetbridge")

_TOOL_ERRORS = (
    AuthenticationError,
    IntegrationError,
    RateLimitError,
    InvalidArgumentError,
    ParseError,
    SessionStateError,
)


def _handle_mcp_error(e: Exception) -> dict:
    """Convert exceptions to agent-friendly error dicts."""
    if isinstance(e, AuthenticationError):
        return {"error": "auth_error", "message": str(e), "action": "Ask user to run sheetbridge-auth and set GSHEETS_ACCESS_TOKEN"}
    if isinstance(e, RateLimitError):
        return {"error": "rate_limit", "message": str(e), "action": "Wait a moment and retry"}
    if isinstance(e, IntegrationError):
        return {"error": "integration_error", "message": str(e)}
    if isinstance(e, InvalidArgumentError):
        return {"error": "invalid_argument", "message": str(e)}
    if isinstance(e, ParseError):
        return {"error": "parse_error", "message": str(e)}
    return {"error": "unknown_error", "message": str(e)}


@mcp.tool
def sheets_read(spreadsheet: str, sheet_name: str, has_header: bool = False, infer_types: bool | None = None) -> dict:
    """Read every row of a sheet. spreadsheet is a 44-character spreadsheet id or a docs.google.com sharing URL.
    With has_header the first row is returned as column_names. With infer_types the columns are typed
    integer/boolean/date/text from the first data row, otherwise every value is text."""
    try:
        result = reader_service.read_sheet(spreadsheet, sheet_name, has_header=has_header, infer=infer_types)
        rows = [[v.isoformat() if hasattr(v, "isoformat") else v for v in row] for row in result]
        return {
            "spreadsheet_id": result.location.spreadsheet_id,
            "columns": [c.value for c in result.schema],
            "column_names": result.column_names,
            "rows": rows,
            "count": len(rows),
        }
    except _TOOL_ERRORS as e:
        return _handle_mcp_error(e)


@mcp.tool
def sheets_write(rows: list[Any], options: dict | None = None) -> dict:
    """Write rows to a sheet in batches of 2000. Each row is a list of values or a single value.
    options: spreadsheet_id (omit to create a new spreadsheet), spreadsheet_name, sheet_name (default Sheet1),
    header (list of column labels). Returns the number of rows written and the spreadsheet URL."""
    try:
        if not rows:
            raise InvalidArgumentError("rows must contain at least one row")
        return writer_service.write_rows(rows, options).model_dump()
    except _TOOL_ERRORS as e:
        return _handle_mcp_error(e)


@mcp.tool
def sheets_auth_url() -> dict:
    """Get the Google consent URL that yields a Sheets access token."""
    return {"url": auth.authorization_url(), "authenticated": auth.has_access_token()}
