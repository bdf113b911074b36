"""
linedb/errors.py
Failure taxonomy shared by the table engine, the registry and the
command layer.

  DatabaseError
  ├── InvalidTableNameError   (also a ValueError)
  ├── RowNotFoundError        (also a LookupError)
  ├── InvalidValueError       (also a ValueError)
  └── InternalError
      └── CorruptedTableError
"""

from __future__ import annotations


class DatabaseError(Exception):
    """Base class for every failure raised by linedb."""


class InvalidTableNameError(DatabaseError, ValueError):
    """Table name does not match the allowed character set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid table name: {name!r}")
        self.name = name


class RowNotFoundError(DatabaseError, LookupError):
    """Row id is outside the table's current row range."""

    def __init__(self, table: str, row_id: int) -> None:
        super().__init__(f"Record with ID={row_id} not found in '{table}'")
        self.table = table
        self.row_id = row_id


class InternalError(DatabaseError):
    """Underlying file-system failure."""


class CorruptedTableError(InternalError):
    """On-disk line count disagrees with the tracked row count."""

    def __init__(self, table: str) -> None:
        super().__init__(f"Corrupted table file: {table}")
        self.table = table


class InvalidValueError(DatabaseError, ValueError):
    """Field value cannot be stored in the table file's encoding."""
