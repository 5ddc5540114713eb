from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_SHEET_NAME = "Sheet1"

CellValue = int | bool | date | str | None


class ColumnType(str, Enum):
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TEXT = "text"
    DATE = "date"


class SheetLocation(BaseModel):
    spreadsheet_id: str = Field(min_length=44, max_length=44)
    sheet_name: str = DEFAULT_SHEET_NAME

    model_config = {"frozen": True}


class WriteOptions(BaseModel):
    spreadsheet_id: str | None = None
    spreadsheet_name: str | None = None
    sheet_name: str = DEFAULT_SHEET_NAME
    header: list[Any] | dict[str, Any] | None = None

    model_config = {"extra": "forbid"}


class WriteRangeResponse(BaseModel):
    spreadsheet_id: str
    updated_range: str
    updated_rows: int
    updated_columns: int
    updated_cells: int


class WriteSummary(BaseModel):
    rows_written: int
    spreadsheet_id: str
    sheet_name: str
    url: str


class ReadSheetRequest(BaseModel):
    spreadsheet: str
    sheet_name: str
    has_header: bool = False
    infer_types: bool | None = None


class ReadSheetResponse(BaseModel):
    spreadsheet_id: str
    sheet_name: str
    columns: list[ColumnType]
    column_names: list[str] | None = None
    rows: list[list[CellValue]]


class WriteSheetRequest(BaseModel):
    rows: list[Any]
    options: WriteOptions | None = None
