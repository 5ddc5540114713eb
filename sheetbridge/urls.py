"""Spreadsheet URL and id helpers.

A spreadsheet is addressed either by its 44-character id or by a sharing URL
of the form ``https://docs.google.com/spreadsheets/d/<id>/edit``.
"""

from sheetbridge.exceptions import InvalidArgumentError

SHARING_URL_PREFIX = "https://docs.google.com/spreadsheets/"
SPREADSHEET_ID_LENGTH = 44


def is_sheet_url(text: str) -> bool:
    return SHARING_URL_PREFIX in text


def extract_id(url: str) -> str:
    """Pull the spreadsheet id out of the ``/d/<id>/`` segment of a sharing URL."""
    marker = url.find("/d/")
    if marker == -1:
        raise InvalidArgumentError("Invalid URL: expected a '/d/<spreadsheet id>' segment")
    start = marker + 3
    end = url.find("/", start)
    spreadsheet_id = url[start:] if end == -1 else url[start:end]
    if len(spreadsheet_id) != SPREADSHEET_ID_LENGTH:
        raise InvalidArgumentError(f"Invalid spreadsheet id: {spreadsheet_id!r}")
    return spreadsheet_id


def resolve_spreadsheet_id(identifier: str | None) -> str:
    """Accept either a sharing URL or a bare id and return the id."""
    if not identifier:
        raise InvalidArgumentError("URL or spreadsheet id is required")
    identifier = identifier.strip()
    if is_sheet_url(identifier):
        return extract_id(identifier)
    if len(identifier) == SPREADSHEET_ID_LENGTH:
        return identifier
    raise InvalidArgumentError("Invalid URL or spreadsheet id")


def sharing_url(spreadsheet_id: str) -> str:
    return f"{SHARING_URL_PREFIX}d/{spreadsheet_id}"
