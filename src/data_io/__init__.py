"""
CSV file handles and their error types.

Provides CsvIO, a record-level read/write handle over a single CSV file with
atomic saves, and the CsvIOError exception hierarchy it raises.
"""
