"""CheckService: read-only integrity report.

Linter pattern, one command. Three categories: blocking graph health,
position precision, and board sequence counters. Nothing is repaired
here; ``position rebalance`` is the fix for precision issues.
"""

from __future__ import annotations

from typing import Any

from kanbanctl.domain import positions
from kanbanctl.domain.ids import short_id
from kanbanctl.domain.types import Column
from kanbanctl.services.base import BaseService
from kanbanctl.services.result import ServiceResult
from kanbanctl.services.telemetry import trace_span, traced

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_GRAPH = "blocking_graph"
CAT_POSITIONS = "positions"
CAT_BOARDS = "boards"


def _issue(category: str, severity: str, message: str, **detail: Any) -> dict[str, Any]:
    return {"category": category, "severity": severity, "message": message, **detail}


class CheckService(BaseService):
    """Reports integrity issues without modifying anything."""

    @traced
    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Collect every issue, then drop those below *min_severity*."""
        issues: list[dict[str, Any]] = []
        with trace_span(CAT_GRAPH):
            issues.extend(self._check_blocking_graph())
        with trace_span(CAT_POSITIONS):
            issues.extend(self._check_positions())
        with trace_span(CAT_BOARDS):
            issues.extend(self._check_boards())

        if min_severity == SEVERITY_ERROR:
            issues = [i for i in issues if i["severity"] == SEVERITY_ERROR]
        errors = sum(1 for i in issues if i["severity"] == SEVERITY_ERROR)
        return ServiceResult(
            ok=True,
            op="check",
            data={"issues": issues, "count": len(issues), "errors": errors},
        )

    def _check_blocking_graph(self) -> list[dict[str, Any]]:
        graph = self._workspace.graph
        graph.invalidate()
        issues: list[dict[str, Any]] = []
        for cycle in graph.cycles():
            path = " -> ".join(short_id(task_id) for task_id in [*cycle, cycle[0]])
            issues.append(
                _issue(CAT_GRAPH, SEVERITY_ERROR, f"blocking cycle: {path}", tasks=cycle)
            )
        for task_id, missing in graph.dangling_edges():
            issues.append(
                _issue(
                    CAT_GRAPH,
                    SEVERITY_WARNING,
                    f"{short_id(task_id)} is blocked by deleted task {missing}",
                    task=task_id,
                    blocker=missing,
                )
            )
        return issues

    def _check_positions(self) -> list[dict[str, Any]]:
        config = self._workspace.settings.position
        scopes: list[tuple[str, str | None]] = []
        if config.scope_by_board:
            board_ids = [b.id for b in self._workspace.boards.list_all()]
            scopes = [(str(col), board_id) for col in Column for board_id in board_ids]
        else:
            scopes = [(str(col), None) for col in Column]

        issues: list[dict[str, Any]] = []
        for column, board_id in scopes:
            values = self._workspace.tasks.column_positions(column, board_id=board_id)
            if positions.needs_rebalance(values, min_gap=config.min_gap):
                issues.append(
                    _issue(
                        CAT_POSITIONS,
                        SEVERITY_WARNING,
                        f"column {column} needs rebalancing "
                        f"(smallest gap {positions.min_adjacent_gap(values):.3g})",
                        column=column,
                        board_id=board_id,
                    )
                )
        return issues

    def _check_boards(self) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for board in self._workspace.boards.list_all():
            seqs = [t.seq for t in self._workspace.tasks.list_tasks(board_id=board.id) if t.seq]
            highest = max(seqs, default=0)
            if board.next_seq > 0 and board.next_seq <= highest:
                issues.append(
                    _issue(
                        CAT_BOARDS,
                        SEVERITY_ERROR,
                        f"board {board.prefix} counter {board.next_seq} is not above "
                        f"its highest seq {highest}",
                        board=board.prefix,
                    )
                )
        return issues
