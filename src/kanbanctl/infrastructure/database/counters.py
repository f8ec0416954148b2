"""Per-board sequence numbers for display ids.

Each board row carries ``next_seq``. Claiming a number reads it and
writes back ``next_seq + 1`` inside the caller's transaction, so the
counter only ever moves forward and a seq is never handed out twice, even
after the task holding it is deleted.

The caller owns the transaction: pass a ``Connection`` obtained from
``engine.begin()`` so the increment commits or rolls back with the
surrounding writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from kanbanctl.infrastructure.database.schema import boards, tasks

if TYPE_CHECKING:
    from sqlalchemy import Connection


def next_board_seq(conn: Connection, board_id: str) -> int:
    """Claim the next sequence number for *board_id*.

    Boards whose counter was never initialized (``next_seq`` of 0 or NULL)
    are seeded from the highest seq already used by their tasks.

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction).
        board_id: The board to draw from.

    Returns:
        The claimed seq (1 for a fresh board).

    Raises:
        ValueError: If no board has id *board_id*.
    """
    row = conn.execute(select(boards.c.next_seq).where(boards.c.id == board_id)).first()
    if row is None:
        msg = f"Unknown board: {board_id!r}"
        raise ValueError(msg)

    current_value = row.next_seq or 0
    if current_value <= 0:
        highest = conn.execute(
            select(func.max(tasks.c.seq)).where(tasks.c.board_id == board_id)
        ).scalar_one()
        current_value = (highest or 0) + 1

    conn.execute(
        update(boards).where(boards.c.id == board_id).values(next_seq=current_value + 1)
    )
    return current_value
