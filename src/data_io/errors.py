"""
Exception types raised by the CSV file handle.

**Conceptual**: Every way a CsvIO operation can fail has its own exception
class, all rooted in CsvIOError. Callers decide what to do about a failure
(retry, skip, abort) instead of the handle terminating the process.

**Usage**: Catch CsvIOError to handle any handle failure, or a specific
subclass (e.g., RecordsExhaustedError) when only one condition is expected.
"""

from pathlib import Path


class CsvIOError(Exception):
    """
    Base class for all CsvIO failures.

    Attributes:
        path: The CSV path the failing handle is bound to (None if unknown).
    """

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class CsvFileNotFoundError(CsvIOError, FileNotFoundError):
    """Raised when the CSV path does not exist at open time."""
    pass


class CsvCreateError(CsvIOError):
    """Raised when the write side of the handle cannot be created."""
    pass


class MissingHeaderError(CsvIOError):
    """Raised when the file has no header row (empty file)."""
    pass


class RecordsExhaustedError(CsvIOError):
    """Raised by read_record when no further records remain."""
    pass


class MalformedRecordError(CsvIOError):
    """
    Raised when the codec cannot decode a row, or the row's field count
    differs from the header under strict field counting.

    Attributes:
        line_number: Physical line number reported by the codec (1-based).
    """

    def __init__(self, message: str, path: Path | str | None = None, line_number: int | None = None):
        super().__init__(message, path)
        self.line_number = line_number


class RecordRejectedError(CsvIOError):
    """Raised when write_record refuses a record."""
    pass


class SaveError(CsvIOError):
    """Raised when buffered writes cannot be persisted to disk."""
    pass


class HandleClosedError(CsvIOError):
    """Raised when any operation is invoked on a closed handle."""
    pass
