"""
linedb/commands.py
CommandEngine: the request boundary in front of FileDatabase.

Commands (one per line, JSON arrays for field lists):
  insert <table> ["a", "b", ""]        → {"status": "OK", "row_id": n}
  select <table> <row_id>              → {"status": "OK", "values": [...]}
  update <table> <row_id> ["x", "y"]   → {"status": "OK"}

Failures stay distinguishable so callers can map them separately:
  CommandError / InvalidTableNameError /
  InvalidValueError                    → "bad_request"
  RowNotFoundError                     → "not_found"
  any other DatabaseError              → "error"
"""

from __future__ import annotations
import json
from typing import Any

from linedb.db import FileDatabase
from linedb.errors import DatabaseError, InvalidTableNameError, InvalidValueError, RowNotFoundError

STATUS_OK = "OK"
STATUS_BAD_REQUEST = "bad_request"
STATUS_NOT_FOUND = "not_found"
STATUS_ERROR = "error"

VERBS = ("insert", "select", "update")


class CommandError(Exception):
    """Malformed command line."""


def error_status(exc: BaseException) -> str:
    """Map an exception raised by CommandEngine.execute to a status string."""
    if isinstance(exc, (CommandError, InvalidTableNameError, InvalidValueError)):
        return STATUS_BAD_REQUEST
    if isinstance(exc, RowNotFoundError):
        return STATUS_NOT_FOUND
    return STATUS_ERROR


class CommandEngine:
    """
    Parses and executes insert / select / update commands.

    Returns:
      - insert → {"status": "OK", "row_id": n}
      - select → {"status": "OK", "values": [...]}
      - update → {"status": "OK"}
    """

    def __init__(self, db: FileDatabase) -> None:
        self._db = db

    def execute(self, line: str) -> dict[str, Any]:
        parts = line.strip().split(None, 1)
        if not parts:
            raise CommandError("Empty command")
        verb = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ""

        if verb == "insert":
            return self._exec_insert(rest)
        elif verb == "select":
            return self._exec_select(rest)
        elif verb == "update":
            return self._exec_update(rest)
        else:
            raise CommandError(f"Unknown command: {parts[0]!r} (expected one of {', '.join(VERBS)})")

    # ── Verbs ─────────────────────────────────────────────────────────

    def _exec_insert(self, args: str) -> dict[str, Any]:
        parts = args.split(None, 1)
        if len(parts) != 2:
            raise CommandError("Usage: insert <table> <json-array>")
        table, payload = parts
        row_id = self._db.insert(table, parse_values(payload))
        return {"status": STATUS_OK, "row_id": row_id}

    def _exec_select(self, args: str) -> dict[str, Any]:
        parts = args.split()
        if len(parts) != 2:
            raise CommandError("Usage: select <table> <row_id>")
        table, raw_id = parts
        values = self._db.select(table, parse_row_id(raw_id))
        return {"status": STATUS_OK, "values": values}

    def _exec_update(self, args: str) -> dict[str, Any]:
        parts = args.split(None, 2)
        if len(parts) != 3:
            raise CommandError("Usage: update <table> <row_id> <json-array>")
        table, raw_id, payload = parts
        row_id = parse_row_id(raw_id)
        self._db.update(table, row_id, parse_values(payload))
        return {"status": STATUS_OK}


# ── Argument parsing ──────────────────────────────────────────────────

def parse_row_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise CommandError(f"Row id must be an integer, got {raw!r}") from None


def parse_values(payload: str) -> list[str]:
    """Parse a JSON array of strings."""
    try:
        values = json.loads(payload)
    except json.JSONDecodeError as e:
        raise CommandError(f"Invalid JSON: {e}") from e
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise CommandError("Values must be a JSON array of strings")
    return values


def format_error(exc: DatabaseError | CommandError) -> str:
    if error_status(exc) == STATUS_NOT_FOUND:
        return f"Not found: {exc}"
    return f"Error: {exc}"
