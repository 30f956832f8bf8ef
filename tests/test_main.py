"""
Tests for the main.py inspection entry point.
"""

from main import main


def test_main_prints_summary(tmp_path, capsys):
    path = tmp_path / "people.csv"
    path.write_text("id,name\n1,Ada\n2,Grace\n", encoding="utf-8")
    original = path.read_bytes()

    status = main([str(path)])

    out = capsys.readouterr().out
    assert status == 0
    assert "Columns: 2" in out
    assert "  - name" in out
    assert "Records: 2" in out
    # Read-only: the file is untouched
    assert path.read_bytes() == original


def test_main_reports_missing_file(tmp_path, capsys):
    status = main([str(tmp_path / "missing.csv")])

    out = capsys.readouterr().out
    assert status == 1
    assert out.startswith("Error: CSV file not found")
