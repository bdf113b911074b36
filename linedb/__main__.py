"""
linedb/__main__.py
Interactive REPL for LineDB.

Usage:
    python -m linedb                                # REPL, storage from linedb.toml / ./data
    python -m linedb --data-dir ./mydb              # explicit storage root
    python -m linedb select users 0                 # run one command and exit

Meta-commands:
    .help    — show help
    .tables  — list tables opened in this session
    .quit    — exit
    exit     — exit (also: quit, .exit, .quit)
"""

from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys

from linedb.commands import CommandEngine, CommandError, error_status, format_error, STATUS_OK
from linedb.config import DatabaseConfig, load_config
from linedb.db import FileDatabase
from linedb.errors import DatabaseError

log = logging.getLogger("linedb")

HELP = """
Meta-commands:
  .tables   List tables opened in this session
  .help     Show this help
  .quit     Exit  (also: exit, quit, .exit)

Commands:
  insert users ["Alice", "alice@example.com", ""]
  select users 0
  update users 0 ["Alicia", "alicia@example.com", "admin"]
"""


# ── Command execution ─────────────────────────────────────────────────

def run_command(engine: CommandEngine, line: str) -> tuple[str, str]:
    """Execute one command line; return (status, text to print)."""
    try:
        result = engine.execute(line)
    except (CommandError, DatabaseError) as e:
        status = error_status(e)
        log.debug("Command failed (%s): %s", status, line)
        return status, format_error(e)
    if "values" in result:
        return STATUS_OK, json.dumps(result["values"], ensure_ascii=False)
    if "row_id" in result:
        return STATUS_OK, str(result["row_id"])
    return STATUS_OK, result["status"]


# ── REPL ─────────────────────────────────────────────────────────────

def run_repl(engine: CommandEngine, db: FileDatabase) -> None:
    print(f"LineDB REPL  (location={db.config.location})  Type .help for help, exit or .quit to exit.")
    print()

    while True:
        try:
            line = input("linedb> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("exit", "quit"):
            print("Bye!")
            break
        if stripped.startswith("."):
            if not _handle_meta(stripped, db):
                break
            continue
        _, output = run_command(engine, stripped)
        print(output)


def _handle_meta(cmd: str, db: FileDatabase) -> bool:
    """Run a meta-command; return False when the REPL should stop."""
    cmd = cmd.lower().split()[0]
    if cmd == ".quit" or cmd == ".exit":
        print("Bye!")
        return False
    elif cmd == ".tables":
        tables = db.list_tables()
        if tables:
            for t in tables:
                print(f"  {t}")
        else:
            print("  (no tables)")
    elif cmd == ".help":
        print(HELP)
    else:
        print(f"Unknown meta-command: {cmd}")
    return True


# ── Entry point ───────────────────────────────────────────────────────

def build_config(args: argparse.Namespace) -> DatabaseConfig:
    config = load_config(args.config)
    overrides = {}
    if args.data_dir is not None:
        overrides["location"] = args.data_dir
    if args.max_rows_in_memory is not None:
        overrides["max_rows_in_memory"] = args.max_rows_in_memory
    return dataclasses.replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m linedb", description="LineDB interactive REPL")
    parser.add_argument("--config", metavar="PATH", default=None,
                        help="TOML config file (default: ./linedb.toml if present)")
    parser.add_argument("--data-dir", metavar="PATH", default=None,
                        help="Directory holding the table files")
    parser.add_argument("--max-rows-in-memory", metavar="N", type=int, default=None,
                        help="Tables with fewer rows are updated in memory")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level for stderr output (default: WARNING)")
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="Run a single command instead of the REPL")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    db = FileDatabase(config)
    engine = CommandEngine(db)
    if args.command:
        status, output = run_command(engine, " ".join(args.command))
        print(output)
        return 0 if status == STATUS_OK else 1
    run_repl(engine, db)
    return 0


if __name__ == "__main__":
    sys.exit(main())
