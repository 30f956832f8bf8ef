"""
Configuration settings for CSV file handles.

**Conceptual**: This module provides a strongly-typed configuration object
that loads from environment variables (via .env files). Settings are
validated on construction, so a bad delimiter or encoding fails at startup
rather than halfway through writing a file.

**Why centralized config?**
  - Single source of truth for codec options (encoding, delimiter, strictness).
  - Easy to test (construct CsvIOSettings directly instead of reading env).
  - Fail-fast validation (bad CSVIO_DELIMITER -> clear error at startup).

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import codecs
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root (no-op if the file does not exist)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")


def _parse_bool(name: str, default: str) -> bool:
    raw = os.getenv(name, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(
        f"{name} must be one of {_TRUE_VALUES + _FALSE_VALUES}, got: {raw!r}"
    )


@dataclass(frozen=True)
class CsvIOSettings:
    """
    Codec and persistence options used by every CsvIO handle.

    **Conceptual**: The handle itself never interprets CSV syntax; it hands
    these options to the csv module when building readers and writers, and
    uses the persistence options when saving.

    Attributes:
        encoding: Text encoding for reading and writing (default "utf-8").
        delimiter: Single-character field delimiter (default ",").
        strict_field_count: If True, records whose field count differs from
                            the header are rejected on read and write.
        fsync_on_save: If True, save() fsyncs the temp file before renaming
                       it over the destination.
    """
    encoding: str = "utf-8"
    delimiter: str = ","
    strict_field_count: bool = True
    fsync_on_save: bool = True

    def __post_init__(self):
        """Validate settings after initialization."""
        if len(self.delimiter) != 1:
            raise ValueError(
                f"CSVIO_DELIMITER must be exactly one character, got: {self.delimiter!r}"
            )
        if self.delimiter in ("\r", "\n", '"'):
            raise ValueError(
                f"CSVIO_DELIMITER cannot be a quote or line break, got: {self.delimiter!r}"
            )
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(
                f"CSVIO_ENCODING is not a known encoding: {self.encoding!r}"
            )

    @classmethod
    def from_env(cls) -> "CsvIOSettings":
        """
        Load CSV settings from environment variables.

        **Environment variables** (all optional):
          - CSVIO_ENCODING: Text encoding (default "utf-8").
          - CSVIO_DELIMITER: Field delimiter (default ",").
          - CSVIO_STRICT_FIELD_COUNT: "true"/"false" (default "true").
          - CSVIO_FSYNC_ON_SAVE: "true"/"false" (default "true").

        Returns:
            CsvIOSettings with values loaded from environment.

        Raises:
            ValueError: If any variable holds an invalid value.

        Usage example:
            >>> # In .env file:
            >>> # CSVIO_DELIMITER=;
            >>>
            >>> settings = CsvIOSettings.from_env()
            >>> print(settings.delimiter)  # ";"
        """
        return cls(
            encoding=os.getenv("CSVIO_ENCODING", "utf-8"),
            delimiter=os.getenv("CSVIO_DELIMITER", ","),
            strict_field_count=_parse_bool("CSVIO_STRICT_FIELD_COUNT", "true"),
            fsync_on_save=_parse_bool("CSVIO_FSYNC_ON_SAVE", "true"),
        )


_default_settings: Optional[CsvIOSettings] = None


def get_settings() -> CsvIOSettings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment on first call, then cached.
    Tests can bypass this by passing their own CsvIOSettings to CsvIO, or call
    reset_settings() after changing environment variables.

    Returns:
        Global CsvIOSettings singleton.

    Raises:
        ValueError: If the environment holds invalid settings.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = CsvIOSettings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          monkeypatch.setenv("CSVIO_DELIMITER", ";")
          reset_settings()
          assert get_settings().delimiter == ";"
      ```
    """
    global _default_settings
    _default_settings = None
