"""Tests for task and board reference resolution."""

from __future__ import annotations

import pytest

from kanbanctl.domain.records import BoardRecord, TaskRecord
from kanbanctl.infrastructure.workspace import Workspace
from kanbanctl.services.errors import (
    AmbiguousReferenceError,
    BoardNotFoundError,
    TaskNotFoundError,
)
from kanbanctl.services.resolver import ReferenceResolver, must_resolve, resolve_task


def _put(ws: Workspace, task_id: str, title: str, **kwargs: object) -> TaskRecord:
    task = TaskRecord(id=task_id, title=title, **kwargs)
    ws.tasks.insert(task)
    return task


@pytest.fixture
def resolver(workspace: Workspace) -> ReferenceResolver:
    workspace.boards.insert(BoardRecord(id="board000000wrk1", name="Work", prefix="WRK"))
    _put(workspace, "abc000000000001", "Fix login redirect", board_id="board000000wrk1", seq=7)
    _put(workspace, "abc000000000002", "Write login docs", board_id="board000000wrk1", seq=8)
    _put(workspace, "xyz000000000003", "Deploy", board_id="board000000wrk1", seq=9)
    return ReferenceResolver(workspace.tasks, workspace.boards)


class TestResolveTask:
    def test_exact_id(self, resolver: ReferenceResolver) -> None:
        assert resolver.must_resolve("abc000000000001").title == "Fix login redirect"

    def test_exact_id_beats_other_tiers(self, workspace: Workspace) -> None:
        """An id that is also a prefix of another id still resolves to itself."""
        _put(workspace, "aaaaaaaaaaaaaaa", "first")
        _put(workspace, "aaaaaaaaaaaaaab", "aaaaaaaaaaaaaaa in the title")
        resolver = ReferenceResolver(workspace.tasks, workspace.boards)
        assert resolver.must_resolve("aaaaaaaaaaaaaaa").title == "first"

    def test_unique_prefix(self, resolver: ReferenceResolver) -> None:
        assert resolver.must_resolve("xyz").id == "xyz000000000003"

    def test_ambiguous_prefix_lists_both(self, resolver: ReferenceResolver) -> None:
        resolution = resolver.resolve("abc")
        assert resolution.is_ambiguous
        assert resolution.candidates == [
            ("abc00000", "Fix login redirect"),
            ("abc00000", "Write login docs"),
        ]
        with pytest.raises(AmbiguousReferenceError) as excinfo:
            resolver.must_resolve("abc")
        assert len(excinfo.value.detail["candidates"]) == 2

    def test_prefix_is_case_sensitive(self, resolver: ReferenceResolver) -> None:
        """Upper-case input is not an id prefix; it falls through to titles."""
        assert resolver.resolve("XYZ").is_not_found

    @pytest.mark.parametrize("ref", ["WRK-7", "wrk-7", " WRK-7 "])
    def test_display_id(self, resolver: ReferenceResolver, ref: str) -> None:
        assert resolver.must_resolve(ref).id == "abc000000000001"

    def test_display_id_missing_seq_is_not_found(self, resolver: ReferenceResolver) -> None:
        """No fall-through to title search once the board exists."""
        with pytest.raises(TaskNotFoundError, match="no task found matching: WRK-99"):
            resolver.must_resolve("WRK-99")

    def test_display_id_zero_seq_is_not_found(
        self, workspace: Workspace, resolver: ReferenceResolver
    ) -> None:
        """Seq 0 never exists, and the matching title must not be picked up."""
        _put(workspace, "eee000000000005", "Fix wrk-0 rollout")
        with pytest.raises(TaskNotFoundError, match="no task found matching: WRK-0"):
            resolver.must_resolve("WRK-0")

    def test_display_shape_without_board_searches_titles(self, workspace: Workspace) -> None:
        _put(workspace, "ddd000000000004", "Upgrade to OPS-2 runner")
        resolver = ReferenceResolver(workspace.tasks, workspace.boards)
        assert resolver.must_resolve("OPS-2").id == "ddd000000000004"

    def test_title_substring(self, resolver: ReferenceResolver) -> None:
        assert resolver.must_resolve("REDIRECT").id == "abc000000000001"

    def test_ambiguous_title(self, resolver: ReferenceResolver) -> None:
        with pytest.raises(AmbiguousReferenceError):
            resolver.must_resolve("login")

    def test_title_wildcards_are_literal(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve("%").is_not_found
        assert resolver.resolve("_").is_not_found

    @pytest.mark.parametrize("ref", ["", "   ", "nothing-matches-this"])
    def test_not_found(self, resolver: ReferenceResolver, ref: str) -> None:
        resolution = resolver.resolve(ref)
        assert resolution.is_not_found
        assert not resolution.is_ambiguous

    def test_functional_forms(self, workspace: Workspace, resolver: ReferenceResolver) -> None:
        assert resolve_task(workspace.tasks, workspace.boards, "xyz").task is not None
        assert must_resolve(workspace.tasks, workspace.boards, "WRK-9").title == "Deploy"


class TestResolveBoard:
    @pytest.fixture
    def boards(self, workspace: Workspace) -> ReferenceResolver:
        workspace.boards.insert(BoardRecord(id="b1", name="Website", prefix="WEB"))
        workspace.boards.insert(BoardRecord(id="b2", name="Web API", prefix="API"))
        workspace.boards.insert(BoardRecord(id="b3", name="Operations", prefix="OPS"))
        return ReferenceResolver(workspace.tasks, workspace.boards)

    @pytest.mark.parametrize("ref", ["b3", "ops", "OPS", "operations", "erat"])
    def test_lookups(self, boards: ReferenceResolver, ref: str) -> None:
        assert boards.resolve_board(ref).id == "b3"

    def test_ambiguous_partial_name(self, boards: ReferenceResolver) -> None:
        with pytest.raises(AmbiguousReferenceError) as excinfo:
            boards.resolve_board("we")
        assert {c["id"] for c in excinfo.value.detail["candidates"]} == {"WEB", "API"}

    def test_not_found(self, boards: ReferenceResolver) -> None:
        with pytest.raises(BoardNotFoundError):
            boards.resolve_board("mobile")
