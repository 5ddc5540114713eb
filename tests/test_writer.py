import math

import pytest

from sheetbridge.exceptions import IntegrationError, InvalidArgumentError, SessionStateError
from sheetbridge.models.sheets import WriteOptions, WriteSummary
from sheetbridge.services.writer import (
    BATCH_THRESHOLD,
    RowBuffer,
    SessionState,
    WriteSession,
    write_final,
    write_rows,
    write_transition,
)
from tests.conftest import SPREADSHEET_ID

OPTIONS = {"spreadsheet_id": SPREADSHEET_ID}


def _ranges(mock_write_range):
    return [c.args[1] for c in mock_write_range.call_args_list]


def _batch_sizes(mock_write_range):
    return [len(c.args[2]["values"]) for c in mock_write_range.call_args_list]


class TestRowBuffer:
    def test_close_wraps_rows(self):
        buffer = RowBuffer()
        buffer.append(["a", "1"])
        buffer.append(["b", "2"])
        assert buffer.close() == {"values": [["a", "1"], ["b", "2"]]}

    def test_close_is_idempotent(self):
        buffer = RowBuffer()
        buffer.append(["a"])
        first = buffer.close()
        assert buffer.close() is first
        assert first == {"values": [["a"]]}

    def test_empty_close(self):
        assert RowBuffer().close() == {"values": []}

    def test_append_after_close(self):
        buffer = RowBuffer()
        buffer.close()
        with pytest.raises(SessionStateError):
            buffer.append(["late"])


class TestBatching:
    def test_4500_rows(self, mock_write_range):
        session = WriteSession(OPTIONS).start()
        for i in range(4500):
            session.append((i, f"row {i}"))
        summary = session.finalize()

        assert _ranges(mock_write_range) == ["Sheet1!A1", "Sheet1!A2001", "Sheet1!A4001"]
        assert _batch_sizes(mock_write_range) == [2000, 2000, 500]
        assert summary.rows_written == 4500
        first_batch = mock_write_range.call_args_list[0].args[2]["values"]
        assert first_batch[0] == ["0", "row 0"]
        last_batch = mock_write_range.call_args_list[2].args[2]["values"]
        assert last_batch[-1] == ["4499", "row 4499"]

    def test_exact_multiple_skips_empty_final_flush(self, mock_write_range):
        session = WriteSession(OPTIONS).start()
        for i in range(2 * BATCH_THRESHOLD):
            session.append(i)
        session.finalize()
        assert _batch_sizes(mock_write_range) == [2000, 2000]

    @pytest.mark.parametrize("row_count", [1, 2, 3, 4, 7, 9, 10])
    def test_flush_count_and_total(self, mock_write_range, row_count):
        session = WriteSession(OPTIONS, threshold=3).start()
        for i in range(row_count):
            session.append([i])
        summary = session.finalize()
        assert mock_write_range.call_count == math.ceil(row_count / 3)
        assert sum(_batch_sizes(mock_write_range)) == row_count
        flushed = [row for c in mock_write_range.call_args_list for row in c.args[2]["values"]]
        assert flushed == [[str(i)] for i in range(row_count)]
        assert summary.rows_written == row_count

    def test_flushes_on_threshold_before_finalize(self, mock_write_range):
        session = WriteSession(OPTIONS, threshold=2).start()
        session.append("a")
        assert mock_write_range.call_count == 0
        session.append("b")
        assert mock_write_range.call_count == 1
        assert session.pending_rows == 0
        assert session.total_rows == 2
        assert session.state is SessionState.OPEN

    def test_custom_sheet_name(self, mock_write_range):
        session = WriteSession({**OPTIONS, "sheet_name": "Q1 Sales"}, threshold=2).start()
        for i in range(3):
            session.append(i)
        session.finalize()
        assert _ranges(mock_write_range) == ["'Q1 Sales'!A1", "'Q1 Sales'!A3"]

    def test_targets_spreadsheet(self, mock_write_range):
        session = WriteSession(OPTIONS).start()
        session.append(1)
        session.finalize()
        assert mock_write_range.call_args.args[0] == SPREADSHEET_ID


class TestHeader:
    def test_header_counts_as_a_row(self, mock_write_range):
        session = WriteSession({**OPTIONS, "header": ["id", "name"]}, threshold=3).start()
        assert session.pending_rows == 1
        assert session.total_rows == 1
        for i in range(4):
            session.append((i, f"n{i}"))
        summary = session.finalize()
        assert _ranges(mock_write_range) == ["Sheet1!A1", "Sheet1!A4"]
        assert mock_write_range.call_args_list[0].args[2]["values"][0] == ["id", "name"]
        assert summary.rows_written == 5

    def test_header_flushes_at_threshold(self, mock_write_range):
        session = WriteSession({**OPTIONS, "header": ["id"]}, threshold=1).start()
        assert session.pending_rows == 0
        session.append((1,))
        session.finalize()
        assert _batch_sizes(mock_write_range) == [1, 1]
        assert _ranges(mock_write_range) == ["Sheet1!A1", "Sheet1!A2"]

    def test_object_header_uses_labels(self, mock_write_range):
        session = WriteSession({**OPTIONS, "header": {"id": "Order ID", "total": "Total"}}).start()
        session.finalize()
        assert mock_write_range.call_args.args[2] == {"values": [["Order ID", "Total"]]}

    def test_header_scalars_encoded(self, mock_write_range):
        session = WriteSession({**OPTIONS, "header": ["name", 2024, True, None]}).start()
        session.finalize()
        assert mock_write_range.call_args.args[2]["values"][0] == ["name", "2024", "TRUE", ""]


class TestStart:
    def test_creates_spreadsheet_without_id(self, mock_write_range, mock_create_spreadsheet):
        session = WriteSession({"spreadsheet_name": "Export", "sheet_name": "Data"}).start()
        mock_create_spreadsheet.assert_called_once_with("Export", sheet_name="Data")
        assert session.location.spreadsheet_id == SPREADSHEET_ID
        assert session.location.sheet_name == "Data"

    def test_default_options(self, mock_write_range, mock_create_spreadsheet):
        session = WriteSession().start()
        mock_create_spreadsheet.assert_called_once_with(None, sheet_name="Sheet1")
        session.append("x")
        summary = session.finalize()
        assert summary == WriteSummary(
            rows_written=1,
            spreadsheet_id=SPREADSHEET_ID,
            sheet_name="Sheet1",
            url=f"https://docs.google.com/spreadsheets/d/{SPREADSHEET_ID}",
        )

    def test_existing_id_does_not_create(self, mock_write_range, mock_create_spreadsheet):
        WriteSession(WriteOptions(spreadsheet_id=SPREADSHEET_ID)).start()
        mock_create_spreadsheet.assert_not_called()

    def test_rejects_short_id(self, mock_create_spreadsheet):
        with pytest.raises(InvalidArgumentError, match="Invalid spreadsheet id"):
            WriteSession({"spreadsheet_id": "abc"}).start()

    def test_rejects_unknown_option(self):
        with pytest.raises(InvalidArgumentError):
            WriteSession({"spreadsheet_id": SPREADSHEET_ID, "colour": "red"})

    def test_rejects_non_object_options(self):
        with pytest.raises(InvalidArgumentError, match="JSON object"):
            WriteSession(["not", "an", "object"])

    def test_rejects_zero_threshold(self):
        with pytest.raises(InvalidArgumentError):
            WriteSession(OPTIONS, threshold=0)


class TestSessionState:
    def test_append_before_start(self):
        with pytest.raises(SessionStateError):
            WriteSession(OPTIONS).append(1)

    def test_finalize_before_start(self):
        with pytest.raises(SessionStateError):
            WriteSession(OPTIONS).finalize()

    def test_start_twice(self, mock_write_range):
        session = WriteSession(OPTIONS).start()
        with pytest.raises(SessionStateError):
            session.start()

    def test_use_after_finalize(self, mock_write_range):
        session = WriteSession(OPTIONS).start()
        session.append(1)
        session.finalize()
        assert session.state is SessionState.CLOSED
        with pytest.raises(SessionStateError):
            session.append(2)
        with pytest.raises(SessionStateError):
            session.finalize()
        with pytest.raises(SessionStateError):
            session.maybe_flush()
        assert mock_write_range.call_count == 1

    def test_failed_flush_closes_session(self, mock_write_range):
        mock_write_range.side_effect = [None, IntegrationError("Sheets API error: 500")]
        session = WriteSession(OPTIONS, threshold=2).start()
        session.append(1)
        session.append(2)
        session.append(3)
        with pytest.raises(IntegrationError):
            session.append(4)
        assert session.state is SessionState.CLOSED
        assert session.flush_count == 1
        with pytest.raises(SessionStateError):
            session.append(5)


class TestFold:
    def test_transition_and_final(self, mock_write_range):
        session = None
        for row in [("a", 1), ("b", 2), ("c", 3)]:
            session = write_transition(session, row, OPTIONS)
        summary = write_final(session)
        assert summary.rows_written == 3
        assert mock_write_range.call_args.args[2] == {"values": [["a", "1"], ["b", "2"], ["c", "3"]]}

    def test_options_only_read_on_first_row(self, mock_write_range):
        session = write_transition(None, 1, OPTIONS)
        same = write_transition(session, 2, {"spreadsheet_id": "ignored"})
        assert same is session
        assert session.location.spreadsheet_id == SPREADSHEET_ID

    def test_final_without_rows(self):
        assert write_final(None) is None

    def test_write_rows(self, mock_write_range):
        summary = write_rows(iter(range(5)), OPTIONS)
        assert summary.rows_written == 5

    def test_write_rows_empty(self, mock_write_range, mock_create_spreadsheet):
        assert write_rows([], OPTIONS) is None
        mock_create_spreadsheet.assert_not_called()
        mock_write_range.assert_not_called()
