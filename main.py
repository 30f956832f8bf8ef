"""
csv_io – Main entry point.

Prints the header and record count of a CSV file, as a quick check that a
file can be opened by CsvIO. Read-only: the file is never saved.

**Usage**:
    From project root:
    ```bash
    python main.py data/people.csv
    ```
"""

import argparse
import sys

from src.data_io.csv_io import CsvIO
from src.data_io.errors import CsvIOError


def main(argv: list[str] | None = None) -> int:
    """Print a summary of the given CSV file. Returns the process exit status."""
    parser = argparse.ArgumentParser(description="Inspect a CSV file with CsvIO.")
    parser.add_argument("csv_path", help="Path to the CSV file to inspect")
    args = parser.parse_args(argv)

    try:
        with CsvIO(args.csv_path) as csv_file:
            record_count = len(csv_file.read_records())
            headers = csv_file.headers
    except (CsvIOError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(f"File:    {args.csv_path}")
    print(f"Columns: {len(headers)}")
    for name in headers:
        print(f"  - {name}")
    print(f"Records: {record_count:,}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
