"""SQLAlchemy Core table definitions for the kanbanctl database.

Three tables: boards (with their sequence counter), tasks, and comments.
List-valued task fields (labels, blocked_by, history) are JSON columns;
nothing in this layer queries inside them.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

boards = Table(
    "boards",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("prefix", Text, nullable=False, unique=True),
    Column("columns", JSON, nullable=False),
    Column("color", Text, default="", server_default=""),
    # Next seq to hand out. Only ever incremented, so deleted tasks never free a number.
    Column("next_seq", Integer, nullable=False, default=1, server_default="1"),
    Column("created", Text, nullable=False),
)

tasks = Table(
    "tasks",
    metadata,
    Column("id", Text, primary_key=True),
    Column("title", Text, nullable=False),
    Column("description", Text, default="", server_default=""),
    Column("type", Text, nullable=False),
    Column("priority", Text, nullable=False),
    Column("column", Text, nullable=False),
    Column("position", REAL, nullable=False),
    Column("labels", JSON, nullable=False),
    Column("blocked_by", JSON, nullable=False),
    Column("parent", Text),  # not a foreign key: dangling parents are tolerated
    Column("board_id", Text, ForeignKey("boards.id")),
    Column("seq", Integer),
    Column("created_by", Text, nullable=False),
    Column("created_by_agent", Text, default="", server_default=""),
    Column("history", JSON, nullable=False),
    Column("created", Text, nullable=False),
    Column("updated", Text, nullable=False),
    UniqueConstraint("board_id", "seq"),
)

comments = Table(
    "comments",
    metadata,
    Column("id", Text, primary_key=True),
    Column("task_id", Text, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False),
    Column("content", Text, nullable=False),
    Column("author_type", Text, nullable=False),
    Column("author_id", Text, default="", server_default=""),
    Column("metadata", JSON),
    Column("created", Text, nullable=False),
)

# "column" is an SQL keyword (SQLAlchemy quotes it in emitted SQL).
task_column = tasks.c["column"]

# ---------------------------------------------------------------------------
# Indexes for the allocator and resolver lookups
# ---------------------------------------------------------------------------

Index("ix_tasks_column_position", task_column, tasks.c.position)
Index("ix_tasks_board", tasks.c.board_id)
Index("ix_comments_task", comments.c.task_id)
