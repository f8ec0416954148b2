"""Task repository: point lookups, predicate searches, single-record writes.

Bound either to an ``Engine`` (each call opens its own connection; each
write is its own atomic transaction) or to a ``Connection`` inside a
caller-owned transaction (calls join it).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Connection, delete, func, insert, select, update
from sqlalchemy.engine import Engine

from kanbanctl.domain.history import History
from kanbanctl.domain.records import TaskRecord
from kanbanctl.infrastructure.database.schema import task_column, tasks


def task_from_row(row: Mapping[str, Any]) -> TaskRecord:
    """Build a :class:`TaskRecord` from a ``tasks`` row mapping."""
    return TaskRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        type=row["type"],
        priority=row["priority"],
        column=row["column"],
        position=row["position"],
        labels=list(row["labels"] or []),
        blocked_by=list(row["blocked_by"] or []),
        parent=row["parent"] or None,
        board_id=row["board_id"] or None,
        seq=row["seq"],
        created_by=row["created_by"],
        created_by_agent=row["created_by_agent"] or "",
        history=History.from_list(row["history"]),
        created=row["created"],
        updated=row["updated"],
    )


def task_values(task: TaskRecord) -> dict[str, Any]:
    """Column values for inserting or updating *task*."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "type": str(task.type),
        "priority": str(task.priority),
        "column": str(task.column),
        "position": task.position,
        "labels": list(task.labels),
        "blocked_by": list(task.blocked_by),
        "parent": task.parent,
        "board_id": task.board_id,
        "seq": task.seq,
        "created_by": str(task.created_by),
        "created_by_agent": task.created_by_agent,
        "history": task.history.to_list(),
        "created": task.created,
        "updated": task.updated,
    }


class TaskRepository:
    """Encapsulates SQL over the ``tasks`` table."""

    def __init__(self, bind: Engine | Connection) -> None:
        self._bind = bind

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Engine):
            with self._bind.begin() as conn:
                yield conn
        else:
            yield self._bind

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, task_id: str) -> TaskRecord | None:
        """Point lookup by id."""
        with self._connect() as conn:
            row = conn.execute(select(tasks).where(tasks.c.id == task_id)).mappings().first()
        return task_from_row(row) if row is not None else None

    def find_by_id_prefix(self, prefix: str) -> list[TaskRecord]:
        """Tasks whose id starts with *prefix* (case-sensitive, literal).

        ``substr`` comparison sidesteps LIKE, which is case-insensitive in
        SQLite and treats ``%``/``_`` as wildcards.
        """
        stmt = (
            select(tasks)
            .where(func.substr(tasks.c.id, 1, len(prefix)) == prefix)
            .order_by(tasks.c.created, tasks.c.id)
        )
        with self._connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [task_from_row(row) for row in rows]

    def find_by_board_seq(self, board_id: str, seq: int) -> TaskRecord | None:
        stmt = select(tasks).where(tasks.c.board_id == board_id, tasks.c.seq == seq)
        with self._connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return task_from_row(row) if row is not None else None

    def search_title(self, fragment: str) -> list[TaskRecord]:
        """Case-insensitive substring match on title (LIKE wildcards escaped)."""
        stmt = (
            select(tasks)
            .where(func.lower(tasks.c.title).contains(fragment.lower(), autoescape=True))
            .order_by(tasks.c.created, tasks.c.id)
        )
        with self._connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [task_from_row(row) for row in rows]

    def list_tasks(
        self,
        *,
        column: str | None = None,
        board_id: str | None = None,
        limit: int | None = None,
    ) -> list[TaskRecord]:
        """Tasks ordered by column position (ties broken by id)."""
        stmt = select(tasks)
        if column is not None:
            stmt = stmt.where(task_column == column)
        if board_id is not None:
            stmt = stmt.where(tasks.c.board_id == board_id)
        stmt = stmt.order_by(tasks.c.position, tasks.c.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [task_from_row(row) for row in rows]

    def column_positions(self, column: str, *, board_id: str | None = None) -> list[float]:
        """Positions in one ordering scope, ascending."""
        stmt = select(tasks.c.position).where(task_column == column)
        if board_id is not None:
            stmt = stmt.where(tasks.c.board_id == board_id)
        stmt = stmt.order_by(tasks.c.position)
        with self._connect() as conn:
            return [float(p) for p in conn.execute(stmt).scalars().all()]

    def column_order(self, column: str, *, board_id: str | None = None) -> list[tuple[str, float]]:
        """``(id, position)`` pairs in read order for one ordering scope."""
        stmt = select(tasks.c.id, tasks.c.position).where(task_column == column)
        if board_id is not None:
            stmt = stmt.where(tasks.c.board_id == board_id)
        stmt = stmt.order_by(tasks.c.position, tasks.c.id)
        with self._connect() as conn:
            return [(str(row.id), float(row.position)) for row in conn.execute(stmt)]

    def blocked_by_of(self, task_id: str) -> list[str] | None:
        """A task's blocked_by ids, or None when the task does not exist."""
        stmt = select(tasks.c.blocked_by).where(tasks.c.id == task_id)
        with self._connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None
        return list(row.blocked_by or [])

    def blocking_edges(self) -> dict[str, list[str]]:
        """Every task id mapped to its blocked_by ids."""
        with self._connect() as conn:
            rows = conn.execute(select(tasks.c.id, tasks.c.blocked_by)).all()
        return {str(row.id): list(row.blocked_by or []) for row in rows}

    def exists(self, task_id: str) -> bool:
        with self._connect() as conn:
            return conn.execute(select(tasks.c.id).where(tasks.c.id == task_id)).first() is not None

    # ------------------------------------------------------------------
    # Writes (one record per statement)
    # ------------------------------------------------------------------

    def insert(self, task: TaskRecord) -> None:
        with self._connect() as conn:
            conn.execute(insert(tasks).values(**task_values(task)))

    def update(self, task: TaskRecord) -> bool:
        """Overwrite the stored row for ``task.id``. Returns False if it is gone."""
        values = task_values(task)
        task_id = values.pop("id")
        with self._connect() as conn:
            result = conn.execute(update(tasks).where(tasks.c.id == task_id).values(**values))
        return result.rowcount > 0

    def delete(self, task_id: str) -> bool:
        with self._connect() as conn:
            result = conn.execute(delete(tasks).where(tasks.c.id == task_id))
        return result.rowcount > 0

    def set_position(self, task_id: str, position: float, *, updated: str) -> None:
        with self._connect() as conn:
            conn.execute(
                update(tasks).where(tasks.c.id == task_id).values(position=position, updated=updated)
            )

    def detach_board(self, board_id: str) -> int:
        """Clear the board reference on every task of *board_id*."""
        with self._connect() as conn:
            result = conn.execute(
                update(tasks).where(tasks.c.board_id == board_id).values(board_id=None)
            )
        return result.rowcount

    def delete_board_tasks(self, board_id: str) -> int:
        with self._connect() as conn:
            result = conn.execute(delete(tasks).where(tasks.c.board_id == board_id))
        return result.rowcount
