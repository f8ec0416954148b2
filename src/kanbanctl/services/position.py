"""Position allocation against storage, and the rebalance maintenance pass.

:class:`PositionAllocator` reads a column's positions and hands them to the
pure functions in :mod:`kanbanctl.domain.positions`. It is unlocked
read-compute-write: two concurrent writers that read the same column may
produce equal positions, and reads stay deterministic through the
secondary sort on id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kanbanctl.domain import positions
from kanbanctl.domain.history import history_timestamp
from kanbanctl.domain.types import Column, parse_enum
from kanbanctl.services.base import BaseService
from kanbanctl.services.errors import KanbanError, ValidationRejectedError
from kanbanctl.services.result import ServiceResult
from kanbanctl.services.telemetry import traced

if TYPE_CHECKING:
    from kanbanctl.config.models import PositionConfig
    from kanbanctl.domain.records import TaskRecord
    from kanbanctl.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


class PositionAllocator:
    """Computes positions for one ordering scope at a time.

    The scope is a column name, narrowed to a board when
    ``config.scope_by_board`` is set.
    """

    def __init__(self, tasks: TaskRepository, config: PositionConfig) -> None:
        self._tasks = tasks
        self._config = config

    def _scope_board(self, board_id: str | None) -> str | None:
        return board_id if self._config.scope_by_board else None

    def column_positions(self, column: str, *, board_id: str | None = None) -> list[float]:
        return self._tasks.column_positions(str(column), board_id=self._scope_board(board_id))

    def next_position(self, column: str, *, board_id: str | None = None) -> float:
        """Position at the bottom of *column*."""
        return positions.next_position(
            self.column_positions(column, board_id=board_id),
            gap=self._config.default_gap,
        )

    def position_at_index(self, column: str, index: int, *, board_id: str | None = None) -> float:
        """Position that lands at *index* (0 is top; out of range is bottom)."""
        return positions.position_at_index(
            self.column_positions(column, board_id=board_id),
            index,
            gap=self._config.default_gap,
        )

    def position_after(self, target: TaskRecord) -> float:
        """Position directly below *target* in its own column."""
        return positions.position_after(
            target.position,
            self.column_positions(target.column, board_id=target.board_id),
            gap=self._config.default_gap,
        )

    def position_before(self, target: TaskRecord) -> float:
        """Position directly above *target* in its own column."""
        return positions.position_before(
            target.position,
            self.column_positions(target.column, board_id=target.board_id),
        )

    def needs_rebalance(self, column: str, *, board_id: str | None = None) -> bool:
        return positions.needs_rebalance(
            self.column_positions(column, board_id=board_id),
            min_gap=self._config.min_gap,
        )


class PositionService(BaseService):
    """Maintenance over stored positions."""

    @traced
    def rebalance(self, column: str, *, board: str | None = None) -> ServiceResult:
        """Respace *column* to ``gap, 2*gap, ...`` in its current order.

        Only tasks whose position actually changes are written, all in one
        transaction. *board* limits the pass to one board's tasks.
        """
        op = "rebalance"
        config = self._workspace.settings.position
        try:
            try:
                target = parse_enum(Column, column, label="column")
            except ValueError as exc:
                raise ValidationRejectedError(str(exc)) from exc

            board_id: str | None = None
            if board:
                board_id = self._resolver.resolve_board(board).id

            with self._workspace.transaction() as txn:
                order = txn.tasks.column_order(str(target), board_id=board_id)
                before = [pos for _, pos in order]
                layout = positions.rebalanced_positions(len(order), gap=config.default_gap)
                now = history_timestamp()
                changed = 0
                for (task_id, old), new in zip(order, layout, strict=True):
                    if old != new:
                        txn.tasks.set_position(task_id, new, updated=now)
                        changed += 1
        except KanbanError as exc:
            return self._fail(op, exc)

        logger.info("Rebalanced %s: %d of %d tasks moved", target, changed, len(order))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "column": str(target),
                "board_id": board_id,
                "count": len(order),
                "changed": changed,
                "min_gap_before": positions.min_adjacent_gap(before),
            },
        )
