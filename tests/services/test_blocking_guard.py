"""Tests for blocked_by validation against storage."""

from __future__ import annotations

import pytest

from kanbanctl.domain.records import TaskRecord
from kanbanctl.infrastructure.workspace import Workspace
from kanbanctl.services.blocking import BlockingGuard
from kanbanctl.services.errors import TaskNotFoundError, ValidationRejectedError
from kanbanctl.services.resolver import ReferenceResolver

A, B, C, D = (f"{c * 3}000000000000" for c in "abcd")


@pytest.fixture
def guard(workspace: Workspace) -> BlockingGuard:
    # C is blocked by B, B is blocked by A. D stands alone.
    workspace.tasks.insert(TaskRecord(id=A, title="Alpha"))
    workspace.tasks.insert(TaskRecord(id=B, title="Bravo", blocked_by=[A]))
    workspace.tasks.insert(TaskRecord(id=C, title="Charlie", blocked_by=[B]))
    workspace.tasks.insert(TaskRecord(id=D, title="Delta"))
    return BlockingGuard(workspace.tasks, ReferenceResolver(workspace.tasks, workspace.boards))


def _get(ws: Workspace, task_id: str) -> TaskRecord:
    task = ws.tasks.get(task_id)
    assert task is not None
    return task


class TestHasCycle:
    def test_transitive(self, workspace: Workspace, guard: BlockingGuard) -> None:
        assert guard.has_cycle(A, _get(workspace, C))

    def test_unconnected(self, workspace: Workspace, guard: BlockingGuard) -> None:
        assert not guard.has_cycle(A, _get(workspace, D))


class TestApply:
    def test_adds_resolved_blockers(self, workspace: Workspace, guard: BlockingGuard) -> None:
        task = _get(workspace, D)
        assert guard.apply(task, ["Alpha", "bbb"]) == [A, B]
        assert task.blocked_by == []

    def test_removes(self, workspace: Workspace, guard: BlockingGuard) -> None:
        assert guard.apply(_get(workspace, C), remove_refs=[B]) == []

    def test_self_block_rejected(self, workspace: Workspace, guard: BlockingGuard) -> None:
        with pytest.raises(ValidationRejectedError, match="task cannot block itself"):
            guard.apply(_get(workspace, D), ["Delta"])

    def test_cycle_rejected(self, workspace: Workspace, guard: BlockingGuard) -> None:
        with pytest.raises(ValidationRejectedError, match="circular dependency detected") as excinfo:
            guard.apply(_get(workspace, A), [C])
        assert "ccc00000 is already blocked by aaa00000" in excinfo.value.message
        assert _get(workspace, A).blocked_by == []
        assert _get(workspace, C).blocked_by == [B]

    def test_every_added_edge_is_checked(self, workspace: Workspace, guard: BlockingGuard) -> None:
        """D is harmless; C, added after it in the same batch, closes the cycle."""
        with pytest.raises(ValidationRejectedError) as excinfo:
            guard.apply(_get(workspace, A), [D, C])
        assert "ccc00000 is already blocked by aaa00000" in excinfo.value.message
        assert excinfo.value.detail["blocker"] == C
        assert _get(workspace, A).blocked_by == []

    def test_direct_cycle_rejected(self, workspace: Workspace, guard: BlockingGuard) -> None:
        with pytest.raises(ValidationRejectedError):
            guard.apply(_get(workspace, A), [B])

    def test_unknown_blocker(self, workspace: Workspace, guard: BlockingGuard) -> None:
        with pytest.raises(TaskNotFoundError, match="blocking task not found: nope"):
            guard.apply(_get(workspace, D), ["nope"])

    def test_existing_edge_not_rechecked(self, workspace: Workspace, guard: BlockingGuard) -> None:
        """Re-adding an edge that is already present is a no-op."""
        assert guard.apply(_get(workspace, B), [A]) == [A]

    def test_dangling_existing_blocker_tolerated(
        self, workspace: Workspace, guard: BlockingGuard
    ) -> None:
        task = _get(workspace, D)
        task.blocked_by = ["gone00000000000"]
        assert guard.apply(task, [A]) == ["gone00000000000", A]
