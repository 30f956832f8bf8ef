"""
Record-level read/write handle for a single CSV file.

**Conceptual**: CsvIO bundles everything needed to inspect and rewrite one CSV
file: a read cursor positioned after the header row, a write side that
collects records, and an immutable snapshot of the header. Parsing and
formatting are delegated entirely to the csv module; this class only
sequences calls to it and owns the file handles.

**Two-phase write**: Opening a file never modifies it. Written records are
serialized into an in-memory buffer, and save() writes the header plus every
buffered record into a sibling temp file and atomically renames it over the
original. The read cursor keeps reading the original file's contents even
after a save, so a file can be filtered "in place":

    >>> with CsvIO("data/people.csv") as people:
    ...     for record in people:
    ...         if record[1] != "inactive":
    ...             people.write_record(record)
    ...     people.save()

**Lifecycle**: A handle is OPEN from construction until close(). Every
operation on a CLOSED handle raises HandleClosedError. close() does not save;
records written since the last save() are discarded.

**Thread safety**: None. A handle must be confined to one thread, or guarded
by the caller with its own lock.
"""

import csv
import io
import os
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pandas as pd

from src.config.settings import CsvIOSettings, get_settings
from src.data_io.errors import (
    CsvCreateError,
    CsvFileNotFoundError,
    CsvIOError,
    HandleClosedError,
    MalformedRecordError,
    MissingHeaderError,
    RecordRejectedError,
    RecordsExhaustedError,
    SaveError,
)
from src.utils.fs import atomic_replace, copy_mode, create_sibling_temp, remove_quietly


Record = list[str]


class HandleState(Enum):
    """Lifecycle states of a CsvIO handle."""
    OPEN = "open"
    CLOSED = "closed"


class _LineDecoder:
    """
    Decode a binary stream one physical line at a time for csv.reader.

    Decoding per line keeps an undecodable byte attached to the line it sits
    on: the error surfaces when csv.reader reaches that line, and the
    iterator stays usable afterwards. A leading byte-order mark is dropped.

    Attributes:
        line_number: Number of physical lines pulled so far (1-based once
                     the first line has been read).
    """

    def __init__(self, stream, encoding: str):
        self._stream = stream
        self._encoding = encoding
        self.line_number = 0

    def __iter__(self) -> "_LineDecoder":
        return self

    def __next__(self) -> str:
        raw = self._stream.readline()
        if not raw:
            raise StopIteration
        self.line_number += 1
        line = raw.decode(self._encoding)
        if self.line_number == 1 and line.startswith("\ufeff"):
            line = line[1:]
        return line


class CsvIO:
    """
    Read, write and save records of one CSV file.

    Attributes (read-only properties):
        path: Filesystem location of the CSV file.
        headers: Header row captured at open time (tuple of field names).
        state: Current HandleState.
        is_open: True while state is OPEN.
        pending_count: Number of records written since open.
    """

    def __init__(self, path: Path | str, settings: Optional[CsvIOSettings] = None):
        """
        Open `path`, capture its header row and prepare the write side.

        **Order of operations**:
          1. Open the file for reading (missing file fails here, before any
             header read is attempted).
          2. Create the sibling temp file that save() will write into.
          3. Read the first row as the header.
        If a later step fails, everything opened by earlier steps is released.

        Args:
            path: Path to an existing CSV file with at least a header row.
            settings: Codec options. Defaults to get_settings().

        Raises:
            CsvFileNotFoundError: If `path` does not exist.
            CsvCreateError: If the temp file for writing cannot be created.
            MissingHeaderError: If the file contains no rows.
            MalformedRecordError: If the header row cannot be decoded.
            CsvIOError: If the file cannot be opened for another OS reason.
        """
        self._path = Path(path)
        # save() replaces the file a symlink points to, not the link itself
        self._target = self._path.resolve()
        self._settings = settings or get_settings()
        self._codec_options = {
            "delimiter": self._settings.delimiter,
            "lineterminator": "\n",
        }
        context = str(self._path)

        try:
            self._read_stream = open(self._path, "rb")
        except FileNotFoundError as e:
            raise CsvFileNotFoundError(
                f"CSV file not found: {context}. "
                f"Ensure the file exists and the path is correct.",
                self._path,
            ) from e
        except OSError as e:
            raise CsvIOError(f"{context}: Failed to open for reading. Error: {e}", self._path) from e
        self._lines = _LineDecoder(self._read_stream, self._settings.encoding)
        self._reader = csv.reader(self._lines, delimiter=self._settings.delimiter)

        try:
            self._tmp_path: Optional[Path] = create_sibling_temp(self._target)
        except OSError as e:
            self._read_stream.close()
            raise CsvCreateError(
                f"{context}: Could not create a temp file for writing next to it. Error: {e}",
                self._path,
            ) from e

        try:
            header = self._next_row()
        except CsvIOError:
            self._release()
            raise
        if header is None:
            self._release()
            raise MissingHeaderError(
                f"{context}: No header row found (file is empty).", self._path
            )
        self._headers = tuple(header)

        self._write_buffer = io.StringIO()
        self._writer = csv.writer(self._write_buffer, **self._codec_options)
        self._pending_count = 0
        self._state = HandleState.OPEN

    @classmethod
    def open(cls, path: Path | str, settings: Optional[CsvIOSettings] = None) -> "CsvIO":
        """Alias for CsvIO(path, settings)."""
        return cls(path, settings)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is HandleState.OPEN

    @property
    def pending_count(self) -> int:
        return self._pending_count

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_record(self) -> Record:
        """
        Return the next record after the read cursor.

        Returns:
            List of string fields.

        Raises:
            HandleClosedError: If the handle is closed.
            RecordsExhaustedError: If no records remain. The cursor does not
                                   rewind, so every later call raises too.
            MalformedRecordError: If the next row cannot be decoded, or its
                                  field count differs from the header.
        """
        self._check_open("read_record")
        record = self._next_record()
        if record is None:
            raise RecordsExhaustedError(
                f"{self._path}: No more records to read.", self._path
            )
        return record

    def read_records(self) -> list[Record]:
        """
        Drain every remaining record, in file order.

        Only records after the current cursor position are returned; after a
        full drain, calling again returns an empty list. If a malformed row is
        hit, the exception propagates and records read by this call are lost.

        Raises:
            HandleClosedError: If the handle is closed.
            MalformedRecordError: On the first malformed row.
        """
        self._check_open("read_records")
        records = []
        while True:
            record = self._next_record()
            if record is None:
                return records
            records.append(record)

    def read_frame(self) -> pd.DataFrame:
        """
        Drain the remaining records into a DataFrame.

        Columns are the header fields; every value stays a string (no type
        inference). An exhausted cursor yields an empty frame with the header
        columns.

        Raises:
            HandleClosedError: If the handle is closed.
            MalformedRecordError: On the first malformed row, or if ragged
                                  records (strict_field_count=False) do not
                                  fit the header columns.
        """
        records = self.read_records()
        try:
            return pd.DataFrame(records, columns=list(self._headers))
        except ValueError as e:
            raise MalformedRecordError(
                f"{self._path}: Records do not fit header columns {list(self._headers)}. Error: {e}",
                self._path,
            ) from e

    def __iter__(self) -> "CsvIO":
        return self

    def __next__(self) -> Record:
        self._check_open("iterate")
        record = self._next_record()
        if record is None:
            raise StopIteration
        return record

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write_record(self, record: Sequence[str]) -> None:
        """
        Append one record to the write buffer.

        Nothing reaches the disk until save(). A rejected record leaves the
        buffer exactly as it was.

        Args:
            record: Sequence of string fields (a bare str is rejected, since
                    it would be split into single characters).

        Raises:
            HandleClosedError: If the handle is closed.
            RecordRejectedError: If the record is not a sequence of strings,
                                 has no fields, its field count differs from the header
                                 (strict_field_count), or the codec refuses it.
        """
        self._check_open("write_record")
        context = str(self._path)

        if isinstance(record, (str, bytes)):
            raise RecordRejectedError(
                f"{context}: A record must be a sequence of fields, got a single {type(record).__name__}.",
                self._path,
            )
        try:
            fields = list(record)
        except TypeError as e:
            raise RecordRejectedError(
                f"{context}: A record must be a sequence of fields, got {type(record).__name__}.",
                self._path,
            ) from e

        # A zero-field record serializes to a blank line, which reads back as nothing
        if not fields:
            raise RecordRejectedError(
                f"{context}: A record must have at least one field.", self._path
            )

        bad = [i for i, value in enumerate(fields) if not isinstance(value, str)]
        if bad:
            raise RecordRejectedError(
                f"{context}: Record fields must be strings. "
                f"Non-string fields at positions: {bad[:5]} (showing first 5).",
                self._path,
            )

        if self._settings.strict_field_count and len(fields) != len(self._headers):
            raise RecordRejectedError(
                f"{context}: Record has {len(fields)} fields, header has {len(self._headers)}.",
                self._path,
            )

        try:
            self._writer.writerow(fields)
        except csv.Error as e:
            raise RecordRejectedError(f"{context}: Codec rejected record. Error: {e}", self._path) from e
        self._pending_count += 1

    def write_records(self, records: Iterable[Sequence[str]]) -> None:
        """
        write_record() each record in order.

        Stops at the first rejected record; records before it stay buffered.
        """
        for record in records:
            self.write_record(record)

    def write_frame(self, df: pd.DataFrame) -> None:
        """
        Write every row of a DataFrame as a record.

        The frame's columns must equal the header, in order. Values are
        converted with str(); missing values (NaN, None) become "".

        Raises:
            HandleClosedError: If the handle is closed.
            RecordRejectedError: If the columns do not match the header, or a
                                 row is rejected (earlier rows stay buffered).
        """
        self._check_open("write_frame")
        columns = [str(c) for c in df.columns]
        if columns != list(self._headers):
            raise RecordRejectedError(
                f"{self._path}: DataFrame columns {columns} do not match header {list(self._headers)}.",
                self._path,
            )
        for row in df.itertuples(index=False, name=None):
            self.write_record(["" if pd.isna(value) else str(value) for value in row])

    def save(self) -> None:
        """
        Persist the header and every record written so far.

        **Functionally**:
          - Writes header + buffered records into the sibling temp file.
          - Flushes and (if fsync_on_save) fsyncs it.
          - Copies the original file's permission bits onto it.
          - Atomically renames it over the original path (over the symlink
            target if the path is a symlink; the link is kept).
        Saving again later persists the cumulative output of the session.
        The read cursor is unaffected; it keeps reading the original contents.

        Raises:
            HandleClosedError: If the handle is closed.
            SaveError: If the temp file cannot be written or renamed, or a
                       value cannot be encoded. The original file is intact.
        """
        self._check_open("save")
        context = str(self._path)

        try:
            if self._tmp_path is None:
                self._tmp_path = create_sibling_temp(self._target)
            with open(self._tmp_path, "w", newline="", encoding=self._settings.encoding) as fh:
                csv.writer(fh, **self._codec_options).writerow(self._headers)
                fh.write(self._write_buffer.getvalue())
                fh.flush()
                if self._settings.fsync_on_save:
                    os.fsync(fh.fileno())
            copy_mode(self._target, self._tmp_path)
            atomic_replace(self._tmp_path, self._target)
        except (OSError, UnicodeEncodeError) as e:
            raise SaveError(f"{context}: Failed to save CSV. Error: {e}", self._path) from e

        # The temp file now lives at self._target; a later save() needs a new one
        self._tmp_path = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Close the handle without saving.

        Releases the read stream, deletes the unused temp file and drops any
        unsaved records. Closing an already closed handle does nothing.
        """
        if self._state is HandleState.CLOSED:
            return
        self._state = HandleState.CLOSED
        self._write_buffer.close()
        self._release()

    def __enter__(self) -> "CsvIO":
        self._check_open("enter")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        # A failed __init__ never sets _state
        if getattr(self, "_state", None) is HandleState.OPEN:
            self.close()

    def __repr__(self) -> str:
        return f"CsvIO(path={str(self._path)!r}, state={self._state.value})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_open(self, operation: str) -> None:
        if self._state is not HandleState.OPEN:
            raise HandleClosedError(
                f"{self._path}: Cannot {operation}, handle is already closed.", self._path
            )

    def _next_row(self) -> Optional[Record]:
        """Next non-blank row from the codec, or None at end of stream."""
        try:
            for row in self._reader:
                if row:
                    return row
        except (csv.Error, UnicodeDecodeError) as e:
            raise MalformedRecordError(
                f"{self._path}: Malformed row on line {self._lines.line_number}. Error: {e}",
                self._path,
                line_number=self._lines.line_number,
            ) from e
        return None

    def _next_record(self) -> Optional[Record]:
        row = self._next_row()
        if row is not None and self._settings.strict_field_count and len(row) != len(self._headers):
            raise MalformedRecordError(
                f"{self._path}: Record on line {self._lines.line_number} has {len(row)} fields, "
                f"header has {len(self._headers)}.",
                self._path,
                line_number=self._lines.line_number,
            )
        return row

    def _release(self) -> None:
        self._read_stream.close()
        remove_quietly(self._tmp_path)
        self._tmp_path = None
