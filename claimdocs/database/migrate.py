"""Applies the bundled SQL migrations.

Every migration is written with IF NOT EXISTS guards, so applying the whole
set on each start is safe.
"""

from pathlib import Path
from typing import Any

import psycopg

from claimdocs.logging.logger import Log

_DEFAULT_MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def migration_scripts(directory: Path | None = None) -> list[Path]:
    """SQL files of the migrations directory in file-name order."""
    directory = directory or _DEFAULT_MIGRATIONS_DIR
    return sorted(directory.glob("*.sql"))


def apply_migrations(conn: psycopg.Connection[Any], directory: Path | None = None) -> list[str]:
    """Run every migration script in one transaction. Returns the names applied."""
    applied: list[str] = []
    with conn.transaction():
        for path in migration_scripts(directory):
            conn.execute(path.read_text(encoding="utf-8"))
            applied.append(path.name)
    Log.info("Schema migrations applied", count=len(applied))
    return applied
