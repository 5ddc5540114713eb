"""Column type inference from a one-row sample.

The sample is fetched with a field mask that returns each cell's
``userEnteredValue`` (which names the value kind) and its number format.
Only one row is looked at, so a column whose first data cell is a number but
later holds text will be typed INTEGER and fail to decode further down.
"""

import logging
from typing import Any

from sheetbridge.exceptions import ParseError
from sheetbridge.models.sheets import ColumnType
from sheetbridge.services import sheets as sheets_gateway

logger = logging.getLogger(__name__)

TYPEINFER_FIELDS = (
    "sheets(data(rowData(values(userEnteredFormat/numberFormat,userEnteredValue)),startColumn,startRow))"
)
SAMPLE_LAST_COLUMN = "Z"

VALUE_KIND_TYPES = {
    "numberValue": ColumnType.INTEGER,
    "boolValue": ColumnType.BOOLEAN,
    "stringValue": ColumnType.TEXT,
}
DATE_FORMAT = "DATE"


def _sample_cells(response: dict) -> list:
    """Return ``sheets[0].data[0].rowData[0].values`` or [] when absent."""
    node: Any = response
    for key in ("sheets", 0, "data", 0, "rowData", 0, "values"):
        if isinstance(key, int):
            if not isinstance(node, list):
                raise ParseError("Unexpected type inference response: expected a list")
            if len(node) <= key:
                return []
        elif not isinstance(node, dict):
            raise ParseError("Unexpected type inference response: expected an object")
        elif key not in node:
            return []
        node = node[key]
    if not isinstance(node, list):
        raise ParseError("Unexpected type inference response: 'values' is not a list")
    return node


def _walk(node: Any):
    """Yield every (key, value) pair in a JSON tree."""
    if isinstance(node, dict):
        for key, value in node.items():
            yield key, value
            yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def _is_date_format(key: str, value: Any) -> bool:
    return key in ("numberFormat", "type") and value == DATE_FORMAT


def cell_type(cell: Any) -> ColumnType:
    """Type tag for a single CellData object."""
    tag = None
    is_date = False
    for key, value in _walk(cell):
        if key in VALUE_KIND_TYPES:
            tag = VALUE_KIND_TYPES[key]
        elif _is_date_format(key, value):
            is_date = True
    if tag is None:
        return ColumnType.TEXT
    # format and value keys can come in either order
    return ColumnType.DATE if is_date else tag


def infer_types(spreadsheet_id: str, sheet_name: str, has_header: bool) -> list[ColumnType]:
    """Infer one ColumnType per column from the first data row of a sheet."""
    row = 2 if has_header else 1
    sample_range = sheets_gateway.a1_range(sheet_name, f"A{row}:{SAMPLE_LAST_COLUMN}{row}")
    response = sheets_gateway.read_range(spreadsheet_id, sample_range, fields=TYPEINFER_FIELDS)
    types = [cell_type(cell) for cell in _sample_cells(response)]
    logger.debug("Inferred column types for %s: %s", sample_range, [t.value for t in types])
    return types
