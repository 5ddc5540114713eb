"""Cell codec: Python values to Sheets cell text and back.

Outgoing cells are always strings. The API is called with
``valueInputOption=USER_ENTERED`` so the service parses numbers, booleans and
dates out of the text itself. Incoming cells are decoded according to the
column's ``ColumnType``.
"""

import json
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from sheetbridge.exceptions import ParseError, TypeMismatchError
from sheetbridge.models.sheets import CellValue, ColumnType

TRUE_TOKEN = "TRUE"
FALSE_TOKEN = "FALSE"

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d")


def encode_value(value: Any, declared_type: ColumnType | None = None) -> str:
    """Render one field as cell text.

    ``declared_type`` narrows values that are wider than their column: a
    datetime in a DATE column loses its time, an integral float in an INTEGER
    column loses its ``.0``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return TRUE_TOKEN if value else FALSE_TOKEN
    if isinstance(value, datetime):
        if declared_type is ColumnType.DATE:
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and declared_type is ColumnType.INTEGER and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, Decimal, str)):
        return str(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def encode_row(row: Any) -> list[str]:
    """Encode a tuple, list, mapping, pydantic model or scalar as one sheet row."""
    if isinstance(row, BaseModel):
        fields = list(row.model_dump().values())
    elif isinstance(row, Mapping):
        fields = list(row.values())
    elif isinstance(row, (tuple, list)):
        fields = list(row)
    else:
        fields = [row]
    return [encode_value(field) for field in fields]


def _decode_integer(text: str) -> int:
    stripped = text.strip()
    if not INTEGER_PATTERN.fullmatch(stripped):
        raise ParseError(f"invalid input syntax for type integer: {text!r}")
    return int(stripped, 10)


def _decode_boolean(text: str) -> bool:
    token = text.strip().upper()
    if token == TRUE_TOKEN:
        return True
    if token == FALSE_TOKEN:
        return False
    raise TypeMismatchError(f"invalid input syntax for type boolean: {text!r}")


def _decode_date(text: str) -> date:
    stripped = text.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(stripped, fmt).date()
        except ValueError:
            continue
    raise TypeMismatchError(f"invalid input syntax for type date: {text!r}")


def decode_value(raw: Any, column_type: ColumnType) -> CellValue:
    """Decode one JSON scalar from a values response.

    Empty cells come back as ``None`` for typed columns and ``""`` for text.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        text = TRUE_TOKEN if raw else FALSE_TOKEN
    elif isinstance(raw, (int, float, str)):
        text = str(raw)
    else:
        raise TypeMismatchError(f"expected a scalar cell, got {type(raw).__name__}")

    if column_type is ColumnType.TEXT:
        return text
    if not text.strip():
        return None
    if column_type is ColumnType.INTEGER:
        return _decode_integer(text)
    if column_type is ColumnType.BOOLEAN:
        return _decode_boolean(text)
    if column_type is ColumnType.DATE:
        return _decode_date(text)
    raise TypeMismatchError(f"unsupported column type: {column_type!r}")
