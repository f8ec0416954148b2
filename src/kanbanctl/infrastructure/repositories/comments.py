"""Comment repository."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, insert, select
from sqlalchemy.engine import Engine

from kanbanctl.domain.records import CommentRecord
from kanbanctl.infrastructure.database.schema import comments


class CommentRepository:
    """Encapsulates SQL over the ``comments`` table."""

    def __init__(self, bind: Engine | Connection) -> None:
        self._bind = bind

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Engine):
            with self._bind.begin() as conn:
                yield conn
        else:
            yield self._bind

    def insert(self, comment: CommentRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                insert(comments).values(
                    id=comment.id,
                    task_id=comment.task_id,
                    content=comment.content,
                    author_type=str(comment.author_type),
                    author_id=comment.author_id,
                    metadata=dict(comment.metadata),
                    created=comment.created,
                )
            )

    def list_for_task(self, task_id: str) -> list[CommentRecord]:
        """Comments on *task_id*, oldest first."""
        stmt = (
            select(comments)
            .where(comments.c.task_id == task_id)
            .order_by(comments.c.created, comments.c.id)
        )
        with self._connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            CommentRecord(
                id=row["id"],
                task_id=row["task_id"],
                content=row["content"],
                author_type=row["author_type"],
                author_id=row["author_id"] or "",
                metadata=row["metadata"] or {},
                created=row["created"],
            )
            for row in rows
        ]
