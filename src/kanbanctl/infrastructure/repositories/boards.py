"""Board repository: lookups by id, prefix and name, plus writes."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Connection, delete, func, insert, select
from sqlalchemy.engine import Engine

from kanbanctl.domain.history import history_timestamp
from kanbanctl.domain.records import BoardRecord
from kanbanctl.infrastructure.database.counters import next_board_seq
from kanbanctl.infrastructure.database.schema import boards


def board_from_row(row: Mapping[str, Any]) -> BoardRecord:
    return BoardRecord(
        id=row["id"],
        name=row["name"],
        prefix=row["prefix"],
        columns=list(row["columns"] or []),
        color=row["color"] or "",
        next_seq=row["next_seq"] or 0,
    )


class BoardRepository:
    """Encapsulates SQL over the ``boards`` table."""

    def __init__(self, bind: Engine | Connection) -> None:
        self._bind = bind

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self._bind, Engine):
            with self._bind.begin() as conn:
                yield conn
        else:
            yield self._bind

    def _one(self, *criteria: Any) -> BoardRecord | None:
        with self._connect() as conn:
            row = conn.execute(select(boards).where(*criteria)).mappings().first()
        return board_from_row(row) if row is not None else None

    def get(self, board_id: str) -> BoardRecord | None:
        return self._one(boards.c.id == board_id)

    def find_by_prefix(self, prefix: str) -> BoardRecord | None:
        """Case-insensitive prefix lookup."""
        return self._one(func.upper(boards.c.prefix) == prefix.upper())

    def find_by_name(self, name: str) -> BoardRecord | None:
        """Case-insensitive exact name lookup."""
        return self._one(func.lower(boards.c.name) == name.lower())

    def search_name(self, fragment: str) -> list[BoardRecord]:
        """Boards whose name contains *fragment*, case-insensitively."""
        stmt = (
            select(boards)
            .where(func.lower(boards.c.name).contains(fragment.lower(), autoescape=True))
            .order_by(boards.c.created, boards.c.id)
        )
        with self._connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [board_from_row(row) for row in rows]

    def list_all(self) -> list[BoardRecord]:
        with self._connect() as conn:
            rows = conn.execute(select(boards).order_by(boards.c.created, boards.c.id)).mappings().all()
        return [board_from_row(row) for row in rows]

    def first(self) -> BoardRecord | None:
        """The oldest board, if any."""
        boards_ = self.list_all()
        return boards_[0] if boards_ else None

    def insert(self, board: BoardRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                insert(boards).values(
                    id=board.id,
                    name=board.name,
                    prefix=board.prefix,
                    columns=list(board.columns),
                    color=board.color,
                    next_seq=board.next_seq,
                    created=history_timestamp(),
                )
            )

    def delete(self, board_id: str) -> bool:
        with self._connect() as conn:
            result = conn.execute(delete(boards).where(boards.c.id == board_id))
        return result.rowcount > 0

    def claim_seq(self, board_id: str) -> int:
        """Claim the board's next display sequence number."""
        with self._connect() as conn:
            return next_board_seq(conn, board_id)
