"""SQLite database engine, schema, and board sequence counters via SQLAlchemy Core."""

from kanbanctl.infrastructure.database.counters import next_board_seq
from kanbanctl.infrastructure.database.engine import (
    create_db_engine,
    database_path,
    init_database,
)
from kanbanctl.infrastructure.database.schema import (
    boards,
    comments,
    metadata,
    task_column,
    tasks,
)

__all__ = [
    "boards",
    "comments",
    "create_db_engine",
    "database_path",
    "init_database",
    "metadata",
    "next_board_seq",
    "task_column",
    "tasks",
]
