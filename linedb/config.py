"""
linedb/config.py
DatabaseConfig: storage root and update-strategy threshold.

linedb.toml example:

    [database]
    location = "data"            # directory holding one file per table
    max_rows_in_memory = 1000    # tables smaller than this are updated in memory

Environment overrides (applied after the file):
    LINEDB_LOCATION
    LINEDB_MAX_ROWS_IN_MEMORY
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

CONFIG_FILENAME = "linedb.toml"
DEFAULT_LOCATION = "data"
DEFAULT_MAX_ROWS_IN_MEMORY = 1000

ENV_LOCATION = "LINEDB_LOCATION"
ENV_MAX_ROWS_IN_MEMORY = "LINEDB_MAX_ROWS_IN_MEMORY"


@dataclass
class DatabaseConfig:
    """Resolved settings consumed by FileDatabase and TableFile."""

    location: Path = field(default_factory=lambda: Path(DEFAULT_LOCATION))
    max_rows_in_memory: int = DEFAULT_MAX_ROWS_IN_MEMORY

    def __post_init__(self) -> None:
        self.location = Path(self.location)
        if isinstance(self.max_rows_in_memory, bool) or not isinstance(self.max_rows_in_memory, int):
            raise ValueError(
                f"max_rows_in_memory must be an integer, got {self.max_rows_in_memory!r}"
            )
        if self.max_rows_in_memory < 0:
            raise ValueError(f"max_rows_in_memory must be >= 0, got {self.max_rows_in_memory}")

    def table_path(self, table_name: str) -> Path:
        """File backing `table_name`; the file name equals the table name."""
        return self.location / table_name


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> DatabaseConfig:
    """
    Load the [database] table from a TOML file, then apply environment
    overrides. A missing file yields the defaults; an explicitly given
    path that does not exist raises FileNotFoundError.
    """
    env = os.environ if env is None else env
    if path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        required = False
    else:
        config_path = Path(path)
        required = True

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f).get("database", {})
    elif required:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    location = raw.get("location", DEFAULT_LOCATION)
    max_rows = raw.get("max_rows_in_memory", DEFAULT_MAX_ROWS_IN_MEMORY)

    if env.get(ENV_LOCATION):
        location = env[ENV_LOCATION]
    if env.get(ENV_MAX_ROWS_IN_MEMORY):
        max_rows = _parse_int(ENV_MAX_ROWS_IN_MEMORY, env[ENV_MAX_ROWS_IN_MEMORY])

    location_path = Path(location)
    from_file = "location" in raw and not env.get(ENV_LOCATION)
    # Relative locations in a config file are relative to that file.
    if from_file and not location_path.is_absolute():
        location_path = config_path.parent / location_path

    return DatabaseConfig(location=location_path, max_rows_in_memory=max_rows)
