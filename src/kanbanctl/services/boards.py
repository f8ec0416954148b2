"""BoardService: board creation, listing, and deletion.

Board writes always go straight to SQLite, never through the board server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kanbanctl.domain.ids import generate_task_id, normalize_prefix
from kanbanctl.domain.records import BoardRecord
from kanbanctl.domain.types import DEFAULT_BOARD_COLUMNS, Column, parse_enum
from kanbanctl.services.base import BaseService
from kanbanctl.services.errors import KanbanError, ValidationRejectedError
from kanbanctl.services.result import ServiceResult
from kanbanctl.services.telemetry import traced

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kanbanctl.infrastructure.repositories import BoardRepository

logger = logging.getLogger(__name__)

DEFAULT_BOARD_NAME = "Default"
DEFAULT_BOARD_PREFIX = "DEF"


def create_board(
    boards: BoardRepository,
    *,
    name: str,
    prefix: str,
    columns: Sequence[str] | None = None,
    color: str = "",
) -> BoardRecord:
    """Validate and insert a new board.

    Raises:
        ValidationRejectedError: Bad name, prefix, or column, or the prefix is taken.
    """
    try:
        normalized = normalize_prefix(prefix)
        board_columns = [str(parse_enum(Column, c, label="column")) for c in columns or ()]
    except ValueError as exc:
        raise ValidationRejectedError(str(exc)) from exc

    name = name.strip()
    if not name:
        msg = "name is required"
        raise ValidationRejectedError(msg)

    existing = boards.find_by_prefix(normalized)
    if existing is not None:
        msg = f"prefix '{normalized}' is already in use by board '{existing.name}'"
        raise ValidationRejectedError(msg)

    board = BoardRecord(
        id=generate_task_id(),
        name=name,
        prefix=normalized,
        columns=board_columns or [str(c) for c in DEFAULT_BOARD_COLUMNS],
        color=color,
        next_seq=1,
    )
    boards.insert(board)
    logger.info("Created board %s (%s)", board.name, board.prefix)
    return board


def board_data(board: BoardRecord, **extra: Any) -> dict[str, Any]:
    return {**board.model_dump(), **extra}


class BoardService(BaseService):
    """Board-level operations."""

    @traced
    def create(
        self,
        name: str,
        prefix: str,
        *,
        columns: Sequence[str] | None = None,
        color: str = "",
    ) -> ServiceResult:
        op = "board_create"
        try:
            board = create_board(
                self._workspace.boards, name=name, prefix=prefix, columns=columns, color=color
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data=board_data(board))

    @traced
    def list_boards(self) -> ServiceResult:
        boards = self._workspace.boards.list_all()
        items = [
            board_data(b, task_count=len(self._workspace.tasks.list_tasks(board_id=b.id)))
            for b in boards
        ]
        return ServiceResult(ok=True, op="board_list", data={"items": items, "count": len(items)})

    @traced
    def show(self, ref: str) -> ServiceResult:
        op = "board_show"
        ws = self._workspace
        try:
            board = self._resolver.resolve_board(ref)
        except KanbanError as exc:
            return self._fail(op, exc)
        tasks = ws.tasks.list_tasks(board_id=board.id)
        by_column: dict[str, int] = {}
        for task in tasks:
            by_column[str(task.column)] = by_column.get(str(task.column), 0) + 1
        return ServiceResult(
            ok=True,
            op=op,
            data=board_data(board, task_count=len(tasks), columns_count=by_column),
        )

    @traced
    def delete(self, ref: str, *, delete_tasks: bool = True) -> ServiceResult:
        """Delete a board, and either its tasks or just their board reference.

        Runs in one transaction: the board and its tasks go together.
        """
        op = "board_delete"
        ws = self._workspace
        try:
            board = self._resolver.resolve_board(ref)
        except KanbanError as exc:
            return self._fail(op, exc)

        with ws.transaction() as txn:
            if delete_tasks:
                affected = txn.tasks.delete_board_tasks(board.id)
            else:
                affected = txn.tasks.detach_board(board.id)
            txn.boards.delete(board.id)

        key = "tasks_deleted" if delete_tasks else "tasks_orphaned"
        logger.info("Deleted board %s (%s=%d)", board.prefix, key, affected)
        return ServiceResult(
            ok=True,
            op=op,
            data={"deleted": True, "board": board.name, "prefix": board.prefix, key: affected},
        )
