"""
Tests for CsvIOSettings loading and validation.

Environment variables are set with monkeypatch so they never leak between
tests; conftest.py resets the settings singleton around each test.
"""

import pytest

from src.config.settings import CsvIOSettings, get_settings, reset_settings


ENV_VARS = [
    "CSVIO_ENCODING",
    "CSVIO_DELIMITER",
    "CSVIO_STRICT_FIELD_COUNT",
    "CSVIO_FSYNC_ON_SAVE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_from_env_defaults(clean_env):
    settings = CsvIOSettings.from_env()

    assert settings.encoding == "utf-8"
    assert settings.delimiter == ","
    assert settings.strict_field_count is True
    assert settings.fsync_on_save is True


def test_from_env_reads_variables(clean_env):
    clean_env.setenv("CSVIO_ENCODING", "latin-1")
    clean_env.setenv("CSVIO_DELIMITER", "\t")
    clean_env.setenv("CSVIO_STRICT_FIELD_COUNT", "no")
    clean_env.setenv("CSVIO_FSYNC_ON_SAVE", "0")

    settings = CsvIOSettings.from_env()

    assert settings.encoding == "latin-1"
    assert settings.delimiter == "\t"
    assert settings.strict_field_count is False
    assert settings.fsync_on_save is False


def test_from_env_rejects_bad_boolean(clean_env):
    clean_env.setenv("CSVIO_STRICT_FIELD_COUNT", "maybe")

    with pytest.raises(ValueError) as exc_info:
        CsvIOSettings.from_env()

    assert "CSVIO_STRICT_FIELD_COUNT" in str(exc_info.value)


@pytest.mark.parametrize("delimiter", ["", ";;", "\n", '"'])
def test_invalid_delimiter_rejected(delimiter):
    with pytest.raises(ValueError) as exc_info:
        CsvIOSettings(delimiter=delimiter)

    assert "CSVIO_DELIMITER" in str(exc_info.value)


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError) as exc_info:
        CsvIOSettings(encoding="not-a-codec")

    assert "CSVIO_ENCODING" in str(exc_info.value)


def test_get_settings_is_cached_until_reset(clean_env):
    clean_env.setenv("CSVIO_DELIMITER", ";")
    first = get_settings()

    clean_env.setenv("CSVIO_DELIMITER", "|")
    assert get_settings() is first
    assert get_settings().delimiter == ";"

    reset_settings()
    assert get_settings().delimiter == "|"


def test_handle_uses_global_settings_by_default(clean_env, tmp_path):
    from src.data_io.csv_io import CsvIO

    clean_env.setenv("CSVIO_DELIMITER", "|")
    path = tmp_path / "pipes.csv"
    path.write_text("a|b\n1|2\n", encoding="utf-8")

    with CsvIO(path) as csv_file:
        assert csv_file.headers == ("a", "b")
