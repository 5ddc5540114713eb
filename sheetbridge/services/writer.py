"""Batched streaming writes.

A ``WriteSession`` buffers encoded rows and PUTs them to the sheet every
``threshold`` rows. Each batch lands at row ``total - pending + 1``, so the
session needs no cursor beyond its two counters. Batches that were already
flushed stay in the sheet if a later one fails.

Sessions are not thread-safe. Parallel writers need their own sessions and
must target distinct ranges.
"""

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from sheetbridge.exceptions import InvalidArgumentError, SessionStateError
from sheetbridge.models.sheets import SheetLocation, WriteOptions, WriteSummary
from sheetbridge.services import sheets as sheets_gateway
from sheetbridge.services.codec import encode_row, encode_value
from sheetbridge.urls import SPREADSHEET_ID_LENGTH, sharing_url

logger = logging.getLogger(__name__)

BATCH_THRESHOLD = 2000


class SessionState(str, Enum):
    EMPTY = "empty"
    OPEN = "open"
    FLUSHING = "flushing"
    CLOSED = "closed"


class RowBuffer:
    """Rows waiting for the next PUT."""

    def __init__(self):
        self.rows: list[list[str]] = []
        self._payload: dict | None = None

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def closed(self) -> bool:
        return self._payload is not None

    def append(self, row: list[str]) -> None:
        if self.closed:
            raise SessionStateError("Cannot append to a closed buffer")
        self.rows.append(row)

    def close(self) -> dict:
        """Return the request body; calling it again returns the same body."""
        if self._payload is None:
            self._payload = {"values": self.rows}
        return self._payload


def parse_options(options: WriteOptions | Mapping[str, Any] | None) -> WriteOptions:
    if options is None:
        return WriteOptions()
    if isinstance(options, WriteOptions):
        return options
    if not isinstance(options, Mapping):
        raise InvalidArgumentError("Options must be a JSON object")
    try:
        return WriteOptions.model_validate(dict(options))
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid write options: {e}") from e


def header_row(header: list[Any] | dict[str, Any]) -> list[str]:
    labels = list(header.values()) if isinstance(header, dict) else header
    return [encode_value(label) for label in labels]


class WriteSession:
    def __init__(self, options: WriteOptions | Mapping[str, Any] | None = None, threshold: int = BATCH_THRESHOLD):
        if threshold < 1:
            raise InvalidArgumentError("Batch threshold must be at least 1")
        self.options = parse_options(options)
        self.threshold = threshold
        self.state = SessionState.EMPTY
        self.location: SheetLocation | None = None
        self.total_rows = 0
        self.pending_rows = 0
        self.flush_count = 0
        self._buffer = RowBuffer()

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise SessionStateError(f"Write session is {self.state.value}, expected {expected}")

    def start(self) -> "WriteSession":
        """Bind the session to a spreadsheet, creating one when no id was given."""
        self._require(SessionState.EMPTY)
        opts = self.options
        spreadsheet_id = opts.spreadsheet_id
        if spreadsheet_id is None:
            spreadsheet_id = sheets_gateway.create_spreadsheet(opts.spreadsheet_name, sheet_name=opts.sheet_name)
            logger.info("Created spreadsheet %s", spreadsheet_id)
        elif len(spreadsheet_id) != SPREADSHEET_ID_LENGTH:
            raise InvalidArgumentError("Invalid spreadsheet id")
        self.location = SheetLocation(spreadsheet_id=spreadsheet_id, sheet_name=opts.sheet_name)
        self._buffer = RowBuffer()
        self.state = SessionState.OPEN
        if opts.header is not None:
            self._push(header_row(opts.header))
            self.maybe_flush()
        return self

    def _push(self, row: list[str]) -> None:
        self._buffer.append(row)
        self.pending_rows += 1
        self.total_rows += 1

    def append(self, row: Any) -> None:
        self._require(SessionState.OPEN)
        self._push(encode_row(row))
        self.maybe_flush()

    def maybe_flush(self) -> None:
        self._require(SessionState.OPEN)
        if self.pending_rows >= self.threshold:
            self._flush()

    def _flush(self) -> None:
        start_row = self.total_rows - self.pending_rows + 1
        target = sheets_gateway.a1_range(self.location.sheet_name, f"A{start_row}")
        body = self._buffer.close()
        self.state = SessionState.FLUSHING
        try:
            sheets_gateway.write_range(self.location.spreadsheet_id, target, body)
        except Exception:
            self.state = SessionState.CLOSED
            raise
        logger.debug("Flushed %d rows to %s", self.pending_rows, target)
        self.flush_count += 1
        self._buffer = RowBuffer()
        self.pending_rows = 0
        self.state = SessionState.OPEN

    def finalize(self) -> WriteSummary:
        """Flush the last partial batch and close the session."""
        self._require(SessionState.OPEN)
        if self.pending_rows:
            self._flush()
        self.state = SessionState.CLOSED
        self._buffer = RowBuffer()
        url = sharing_url(self.location.spreadsheet_id)
        logger.info("%d rows written at %s", self.total_rows, url)
        return WriteSummary(
            rows_written=self.total_rows,
            spreadsheet_id=self.location.spreadsheet_id,
            sheet_name=self.location.sheet_name,
            url=url,
        )


def write_transition(
    session: WriteSession | None, row: Any, options: WriteOptions | Mapping[str, Any] | None = None
) -> WriteSession:
    """Fold step: start a session on the first row, then append to it."""
    if session is None:
        session = WriteSession(options).start()
    session.append(row)
    return session


def write_final(session: WriteSession | None) -> WriteSummary | None:
    if session is None:
        return None
    return session.finalize()


def write_rows(rows: Iterable[Any], options: WriteOptions | Mapping[str, Any] | None = None) -> WriteSummary | None:
    """Write every row of ``rows``; returns None when there were none."""
    session = None
    for row in rows:
        session = write_transition(session, row, options)
    return write_final(session)
