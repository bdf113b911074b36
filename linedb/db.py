"""
linedb/db.py
FileDatabase: maps table names to TableFile instances.

  FileDatabase()                           → defaults (./data, 1000 rows)
  FileDatabase(DatabaseConfig("./mydb"))   → explicit storage root

Tables are created lazily on first access and live for the lifetime of
the FileDatabase; exactly one TableFile exists per name.
"""

from __future__ import annotations
import logging
import re
import threading
from typing import Sequence

from linedb.config import DatabaseConfig
from linedb.errors import InvalidTableNameError
from linedb.table_file import TableFile

log = logging.getLogger(__name__)

TABLE_NAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")
# Match the pattern but name directories, not files.
_RESERVED_NAMES = frozenset({".", ".."})


def validate_table_name(name: str) -> str:
    """Return `name` unchanged, or raise InvalidTableNameError."""
    if (
        not isinstance(name, str)
        or TABLE_NAME_PATTERN.fullmatch(name) is None
        or name in _RESERVED_NAMES
    ):
        log.debug("Invalid table name: %r", name)
        raise InvalidTableNameError(name)
    return name


class FileDatabase:
    """
    Registry of TableFile instances plus the insert / select / update
    surface consumed by the command layer.
    """

    def __init__(self, config: DatabaseConfig | None = None) -> None:
        self.config = config if config is not None else DatabaseConfig()
        self._tables: dict[str, TableFile] = {}
        self._lock = threading.Lock()
        self._create_locks: dict[str, threading.Lock] = {}
        log.info("FileDatabase at '%s' (max_rows_in_memory=%d)",
                 self.config.location, self.config.max_rows_in_memory)

    # ------------------------------------------------------------------
    # Table registry
    # ------------------------------------------------------------------

    def get_table(self, name: str) -> TableFile:
        """Return the TableFile for `name`, creating it on first access."""
        validate_table_name(name)
        table = self._tables.get(name)
        if table is not None:
            return table
        with self._lock:
            create_lock = self._create_locks.setdefault(name, threading.Lock())
        # Only first accesses to the same name wait on each other.
        with create_lock:
            # Another thread may have won the race while we waited.
            table = self._tables.get(name)
            if table is None:
                table = TableFile(
                    name=name,
                    filepath=self.config.table_path(name),
                    max_rows_in_memory=self.config.max_rows_in_memory,
                )
                with self._lock:
                    self._tables[name] = table
                    del self._create_locks[name]
            return table

    def list_tables(self) -> list[str]:
        """Return a sorted list of the tables opened so far."""
        with self._lock:
            return sorted(self._tables.keys())

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def insert(self, table_name: str, values: Sequence[str]) -> int:
        return self.get_table(table_name).insert(values)

    def select(self, table_name: str, row_id: int) -> list[str]:
        return self.get_table(table_name).select(row_id)

    def update(self, table_name: str, row_id: int, values: Sequence[str]) -> None:
        self.get_table(table_name).update(row_id, values)

    def __repr__(self) -> str:
        tables = ", ".join(self.list_tables()) or "(none)"
        return f"FileDatabase(location={str(self.config.location)!r}, tables=[{tables}])"
