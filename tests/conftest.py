import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from sheetbridge.config import Settings, get_settings

SPREADSHEET_ID = "1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms"
SHARING_URL = f"https://docs.google.com/spreadsheets/d/{SPREADSHEET_ID}/edit#gid=0"

requires_sheets = pytest.mark.skipif(
    not get_settings().gsheets_access_token,
    reason="Sheets access token not configured; set GSHEETS_ACCESS_TOKEN in .env",
)


# --- Canned API responses ---

VALUES_API_RESPONSE = {
    "range": "Sheet1!A2:Z3",
    "majorDimension": "ROWS",
    "values": [["alice", "30", "TRUE"], ["bob", "25", "FALSE"]],
}

UPDATE_API_RESPONSE = {
    "spreadsheetId": SPREADSHEET_ID,
    "updatedRange": "Sheet1!A1:B2",
    "updatedRows": 2,
    "updatedColumns": 2,
    "updatedCells": 4,
}

CREATE_API_RESPONSE = {
    "spreadsheetId": SPREADSHEET_ID,
    "properties": {"title": "Export"},
    "sheets": [{"properties": {"sheetId": 0, "title": "Sheet1"}}],
    "spreadsheetUrl": f"https://docs.google.com/spreadsheets/d/{SPREADSHEET_ID}/edit",
}


@pytest.fixture
def settings(mocker):
    """Settings with a token, patched into every module that reads them."""
    test_settings = Settings(gsheets_access_token="test-token", gsheets_enable_infer_types=False)
    mocker.patch("sheetbridge.services.sheets.get_settings", return_value=test_settings)
    mocker.patch("sheetbridge.services.reader.get_settings", return_value=test_settings)
    mocker.patch("sheetbridge.auth.get_settings", return_value=test_settings)
    return test_settings


@pytest.fixture
def mock_sheets_build(mocker):
    mock_svc = MagicMock()
    mocker.patch("sheetbridge.services.sheets.build", return_value=mock_svc)
    return mock_svc


@pytest.fixture
def mock_sheets_service(settings, mock_sheets_build):
    """Fully mocked Sheets API service."""
    return mock_sheets_build


@pytest.fixture
def mock_write_range(mocker):
    return mocker.patch("sheetbridge.services.sheets.write_range")


@pytest.fixture
def mock_create_spreadsheet(mocker):
    return mocker.patch("sheetbridge.services.sheets.create_spreadsheet", return_value=SPREADSHEET_ID)


@pytest.fixture
def mock_read_range(mocker):
    return mocker.patch("sheetbridge.services.sheets.read_range")


@pytest.fixture
def api_client():
    """FastAPI TestClient for router tests."""
    from sheetbridge.main import api
    return TestClient(api)
