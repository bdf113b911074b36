"""
linedb/table_file.py
TableFile: one table stored as a flat text file, one record per line.

File layout:
  line n  = codec.encode(fields of row n) + line terminator
  No header, no metadata, no checksum. The row id of a record is its
  0-based line number, so row_count is both the number of lines in the
  file and the id handed out by the next insert.

Updates use one of two strategies:
  in-memory   (row_count <  max_rows_in_memory)
              read every line, replace one, rewrite the file.
  rebuild     (row_count >= max_rows_in_memory)
              stream into "<file>_$tmp" substituting one line, then
              atomically replace the original. Only one line is held
              in memory at a time.
Both produce byte-identical files.

Concurrency: select takes the read lock; insert and update take the
write lock. Operations on different TableFile instances never contend.
"""

from __future__ import annotations
import logging
import os
from itertools import islice
from pathlib import Path
from typing import IO, Sequence

from linedb import codec
from linedb.errors import CorruptedTableError, InternalError, InvalidValueError, RowNotFoundError
from linedb.rwlock import ReadWriteLock

log = logging.getLogger(__name__)

TMP_SUFFIX = "_$tmp"
ENCODING = "utf-8"


class TableFile:
    """
    Owns the file, the row counter and the reader/writer lock of a table.
    No other component touches the file directly.
    """

    def __init__(
        self,
        name: str,
        filepath: str | Path,
        max_rows_in_memory: int = 1000,
    ) -> None:
        log.info("Creating TableFile for '%s' (file=%s, max_rows_in_memory=%d)",
                 name, filepath, max_rows_in_memory)
        self.name = name
        self.max_rows_in_memory = max_rows_in_memory
        self._path = Path(filepath)
        self._lock = ReadWriteLock()
        try:
            if not self._path.exists():
                log.info("File '%s' does not exist, creating it", self._path)
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.touch()
                self._row_count = 0
            else:
                # Only the line count is recovered; contents are not validated.
                self._row_count = self._recover_row_count()
                log.info("File '%s' contains %d rows", self._path, self._row_count)
        except OSError as e:
            log.error("Cannot open table '%s': %s", name, e, exc_info=True)
            raise InternalError(f"Database internal error: {e}") from e
        except UnicodeDecodeError as e:
            log.error("Table '%s' is not valid %s", name, ENCODING, exc_info=True)
            raise CorruptedTableError(name) from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def tmp_path(self) -> Path:
        """Scratch file used by the rebuild strategy."""
        return self._path.with_name(self._path.name + TMP_SUFFIX)

    @property
    def row_count(self) -> int:
        with self._lock.read_locked():
            return self._row_count

    def insert(self, fields: Sequence[str]) -> int:
        """Append a row and return its row id."""
        line = self._pack(fields)
        with self._lock.write_locked():
            try:
                with open(self._path, "a", encoding=ENCODING) as f:
                    f.write(line + "\n")
            except OSError as e:
                raise self._internal_error(e) from e
            row_id = self._row_count
            self._row_count += 1
            return row_id

    def select(self, row_id: int) -> list[str]:
        """Return the fields of row `row_id`."""
        with self._lock.read_locked():
            self._check_row_id(row_id)
            try:
                with self._open_read() as f:
                    line = next(islice(f, row_id, None), None)
            except OSError as e:
                raise self._internal_error(e) from e
            except UnicodeDecodeError as e:
                raise self._corrupted() from e
            if line is None:
                raise self._corrupted()
            return codec.decode(_strip_eol(line))

    def update(self, row_id: int, fields: Sequence[str]) -> None:
        """Replace every field of row `row_id`."""
        line = self._pack(fields)
        with self._lock.write_locked():
            self._check_row_id(row_id)
            try:
                if self._row_count < self.max_rows_in_memory:
                    log.debug("Updating row %d of '%s' in memory", row_id, self.name)
                    self._update_in_memory(row_id, line)
                else:
                    log.debug("Updating row %d of '%s' via %s", row_id, self.name, self.tmp_path.name)
                    self._update_with_rebuild(row_id, line)
            except OSError as e:
                raise self._internal_error(e) from e
            except UnicodeDecodeError as e:
                raise self._corrupted() from e

    def __repr__(self) -> str:
        return f"TableFile(name={self.name!r}, path={str(self._path)!r}, rows={self._row_count})"

    # ------------------------------------------------------------------
    # Update strategies (caller holds the write lock)
    # ------------------------------------------------------------------

    def _update_in_memory(self, row_id: int, line: str) -> None:
        with self._open_read() as f:
            lines = [_strip_eol(raw) for raw in f]
        if len(lines) != self._row_count:
            raise self._corrupted()
        lines[row_id] = line
        # Built before the file is truncated; every line is known to encode.
        payload = "".join(raw + "\n" for raw in lines)
        with open(self._path, "w", encoding=ENCODING) as f:
            f.write(payload)

    def _update_with_rebuild(self, row_id: int, line: str) -> None:
        tmp_path = self.tmp_path
        try:
            with self._open_read() as reader, open(tmp_path, "w", encoding=ENCODING) as writer:
                self._move_lines(reader, writer, row_id)
                if not reader.readline():
                    raise self._corrupted()
                writer.write(line + "\n")
                self._move_lines(reader, writer, self._row_count - row_id - 1)
                if reader.readline():
                    raise self._corrupted()
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _move_lines(self, reader: IO[str], writer: IO[str], count: int) -> None:
        for _ in range(count):
            raw = reader.readline()
            if not raw:
                raise self._corrupted()
            writer.write(_strip_eol(raw) + "\n")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_read(self) -> IO[str]:
        return open(self._path, "r", encoding=ENCODING)

    def _pack(self, fields: Sequence[str]) -> str:
        """Encode fields, rejecting values the file encoding cannot hold."""
        line = codec.encode(fields)
        try:
            line.encode(ENCODING)
        except UnicodeEncodeError as e:
            log.debug("Rejected value for table '%s': %s", self.name, e)
            raise InvalidValueError(f"Value cannot be stored as {ENCODING}: {e.reason}") from e
        return line

    def _recover_row_count(self) -> int:
        """
        Count the rows of an existing file. A final line without a
        terminator is completed first, so the next append starts a new line.
        """
        count = 0
        last = ""
        with self._open_read() as f:
            for last in f:
                count += 1
        if last and not last.endswith("\n"):
            log.warning("File '%s' ends without a line terminator, completing last row", self._path)
            with open(self._path, "a", encoding=ENCODING) as f:
                f.write("\n")
        return count

    def _check_row_id(self, row_id: int) -> None:
        if row_id < 0 or row_id >= self._row_count:
            raise RowNotFoundError(self.name, row_id)

    def _corrupted(self) -> CorruptedTableError:
        log.error("Table '%s' is corrupted: expected %d lines in %s",
                  self.name, self._row_count, self._path)
        return CorruptedTableError(self.name)

    def _internal_error(self, e: OSError) -> InternalError:
        log.error("I/O error on table '%s': %s", self.name, e, exc_info=e)
        return InternalError(f"Database internal error: {e}")


def _strip_eol(line: str) -> str:
    # Encoded lines never contain a raw "\n"; only the terminator is removed.
    return line[:-1] if line.endswith("\n") else line
