from fastapi import APIRouter

from sheetbridge.exceptions import InvalidArgumentError
from sheetbridge.models.sheets import (
    ReadSheetRequest,
    ReadSheetResponse,
    WriteOptions,
    WriteSheetRequest,
    WriteSummary,
)
from sheetbridge.services import reader as reader_service
from sheetbridge.services import writer as writer_service

router = APIRouter(prefix="/api/sheets", tags=["sheets"])


@router.post("/read")
def read_sheet(request: ReadSheetRequest) -> ReadSheetResponse:
    result = reader_service.read_sheet(
        request.spreadsheet, request.sheet_name, has_header=request.has_header, infer=request.infer_types
    )
    rows = [list(row) for row in result]
    return ReadSheetResponse(
        spreadsheet_id=result.location.spreadsheet_id,
        sheet_name=result.location.sheet_name,
        columns=result.schema,
        column_names=result.column_names,
        rows=rows,
    )


@router.post("/write")
def write_sheet(request: WriteSheetRequest) -> WriteSummary:
    if not request.rows:
        raise InvalidArgumentError("rows must contain at least one row")
    return writer_service.write_rows(request.rows, request.options or WriteOptions())
