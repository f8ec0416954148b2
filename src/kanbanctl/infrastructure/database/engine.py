"""SQLite engine for the direct-storage path.

The board server may hold the same file open while the CLI writes, so
every connection runs in WAL mode and waits on a busy lock instead of
failing at once. Foreign keys are on so comments go away with their task.

SQLAlchemy Core without the ORM: each CLI run is a handful of statements
and then exits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from kanbanctl.infrastructure.database.schema import metadata

DATA_DIRNAME = ".kanbanctl"
DB_FILENAME = "kanbanctl.db"

_PRAGMAS = (
    "journal_mode=WAL",
    "foreign_keys=ON",
    "busy_timeout=5000",
)


def database_path(root: Path) -> Path:
    """Where the workspace at *root* keeps its database."""
    return root / DATA_DIRNAME / DB_FILENAME


def _apply_pragmas(dbapi_conn: Any, _record: Any) -> None:
    cursor = dbapi_conn.cursor()
    try:
        for pragma in _PRAGMAS:
            cursor.execute(f"PRAGMA {pragma}")
    finally:
        cursor.close()


def create_db_engine(db_path: Path) -> Engine:
    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _apply_pragmas)
    return engine


def init_database(root: Path) -> Engine:
    """Open the workspace database, creating the file and tables if missing."""
    path = database_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(path)
    metadata.create_all(engine)
    return engine
