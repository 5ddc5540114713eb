"""Typed reads of a sheet region.

``read_sheet`` validates its arguments and fetches the region up front, so
bad input and transport errors surface at call time. Rows are then decoded
lazily, one per ``next()``.

Header handling: with ``has_header=False`` the fetch starts at row 2 and
row 1 never reaches the client. With ``has_header=True`` the whole sheet is
fetched and its first row is taken as the column names; it is not decoded
and not yielded. The type inference sample starts at row 2 in that case too.

Row width: the header row fixes it when there is one, otherwise the longest
fetched row does, since the API trims empty trailing cells. Cells past the
header width are dropped.
"""

import logging
from collections.abc import Iterator
from typing import Any

from sheetbridge.config import get_settings
from sheetbridge.exceptions import InvalidArgumentError, InvalidRangeError
from sheetbridge.models.sheets import CellValue, ColumnType, SheetLocation
from sheetbridge.services import sheets as sheets_gateway
from sheetbridge.services.codec import decode_value
from sheetbridge.services.inference import infer_types
from sheetbridge.urls import resolve_spreadsheet_id

logger = logging.getLogger(__name__)


class RowBuilder:
    """Fixed-width row filled by column position."""

    def __init__(self, width: int):
        self.width = width
        self.filled = 0
        self._values: list[CellValue] = [None] * width

    def set(self, index: int, value: CellValue) -> None:
        if index >= self.width:
            raise InvalidRangeError(f"cell {index + 1} is outside a {self.width}-column schema")
        self._values[index] = value
        self.filled = max(self.filled, index + 1)

    def pad(self) -> None:
        """Treat cells the API trimmed off the end of the row as empty."""
        self.filled = self.width

    @property
    def complete(self) -> bool:
        return self.filled == self.width

    def build(self) -> tuple[CellValue, ...]:
        if not self.complete:
            raise InvalidRangeError(f"row has {self.filled} of {self.width} cells")
        return tuple(self._values)


class SheetRows:
    """Single-pass iterator over the decoded rows of one read."""

    def __init__(
        self,
        location: SheetLocation,
        schema: list[ColumnType],
        rows: list[list[Any]],
        column_names: list[str] | None = None,
    ):
        self.location = location
        self.schema = schema
        self.column_names = column_names
        self._rows = iter(rows)
        self._row_number = 0

    @property
    def width(self) -> int:
        return len(self.schema)

    def __iter__(self) -> Iterator[tuple[CellValue, ...]]:
        return self

    def __next__(self) -> tuple[CellValue, ...]:
        cells = next(self._rows)
        self._row_number += 1
        if len(cells) > self.width:
            logger.debug(
                "Dropping %d cells past column %d in row %d",
                len(cells) - self.width, self.width, self._row_number,
            )
        builder = RowBuilder(self.width)
        for index, raw in enumerate(cells[: self.width]):
            builder.set(index, decode_value(raw, self.schema[index]))
        builder.pad()
        return builder.build()


def _values_from(response: dict) -> list[list[Any]]:
    values = response.get("values", [])
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise InvalidRangeError("Values response does not contain a list of rows")
    return values


def build_schema(
    location: SheetLocation, width: int, has_header: bool, infer: bool
) -> list[ColumnType]:
    if not infer:
        return [ColumnType.TEXT] * width
    inferred = infer_types(location.spreadsheet_id, location.sheet_name, has_header)[:width]
    return inferred + [ColumnType.TEXT] * (width - len(inferred))


def read_sheet(
    identifier: str | None,
    sheet_name: str | None,
    has_header: bool = False,
    infer: bool | None = None,
) -> SheetRows:
    """Read a sheet as typed rows.

    ``identifier`` is a spreadsheet id or sharing URL. ``infer`` defaults to
    the ``gsheets_enable_infer_types`` setting; when off every column is text.
    """
    spreadsheet_id = resolve_spreadsheet_id(identifier)
    if not sheet_name:
        raise InvalidArgumentError("Sheet name is required")
    location = SheetLocation(spreadsheet_id=spreadsheet_id, sheet_name=sheet_name)
    if infer is None:
        infer = get_settings().gsheets_enable_infer_types

    target = sheets_gateway.a1_range(sheet_name) if has_header else sheets_gateway.a1_range(sheet_name, "A2:Z")
    rows = _values_from(sheets_gateway.read_range(spreadsheet_id, target))

    column_names = None
    if has_header and rows:
        column_names = [str(name) for name in rows[0]]
        rows = rows[1:]

    if column_names is not None:
        width = len(column_names)
    elif rows:
        width = max(len(row) for row in rows)
    else:
        width = 0

    schema = build_schema(location, width, has_header, infer) if width else []
    logger.debug("Reading %d rows x %d columns from %s", len(rows), width, target)
    return SheetRows(location, schema, rows, column_names=column_names)
