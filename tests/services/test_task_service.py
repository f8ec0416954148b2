"""Tests for TaskService: add, move, update, delete, block, resume, comment, reads."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from kanbanctl.config.settings import KanbanSettings
from kanbanctl.infrastructure.workspace import Workspace
from kanbanctl.services.tasks import TaskService, extract_mentions
from kanbanctl.services.telemetry import set_telemetry
from tests.conftest import add_board, add_task, health_ok


@pytest.fixture
def svc(workspace: Workspace) -> TaskService:
    return TaskService(workspace)


class TestAdd:
    def test_assigns_id_position_board_and_seq(self, svc: TaskService) -> None:
        result = svc.add("First")
        assert result.ok, result.error
        data = result.data
        assert len(data["id"]) == 15
        assert data["position"] == 1000.0
        assert data["seq"] == 1
        assert data["display_id"] == "DEF-1"
        assert data["column"] == "backlog"
        assert [e["action"] for e in data["history"]["entries"]] == ["created"]
        assert result.meta == {"path": "direct"}

    def test_verbose_records_persist_span(self, svc: TaskService) -> None:
        set_telemetry(True)
        try:
            result = svc.add("Timed")
        finally:
            set_telemetry(False)
        assert result.meta is not None
        (persist,) = result.meta["telemetry"]["children"]
        assert persist["name"] == "persist.create"
        assert persist["annotations"] == {"task": result.data["id"], "path": "direct"}

    def test_auto_creates_default_board_once(self, workspace: Workspace, svc: TaskService) -> None:
        svc.add("One")
        svc.add("Two")
        assert [b.prefix for b in workspace.boards.list_all()] == ["DEF"]

    def test_explicit_board_and_seq_sequence(self, workspace: Workspace, svc: TaskService) -> None:
        add_board(workspace, "Work", "WRK")
        ids = [svc.add(f"T{i}", board="wrk").data["display_id"] for i in range(3)]
        assert ids == ["WRK-1", "WRK-2", "WRK-3"]

    def test_seq_never_reused_after_delete(self, workspace: Workspace, svc: TaskService) -> None:
        add_board(workspace, "Work", "WRK")
        first = svc.add("Doomed", board="WRK").data
        svc.delete(first["id"])
        assert svc.add("Next", board="WRK").data["display_id"] == "WRK-2"

    def test_appends_to_bottom_of_column(self, svc: TaskService) -> None:
        svc.add("A", column="todo")
        assert svc.add("B", column="todo").data["position"] == 2000.0
        assert svc.add("C", column="done").data["position"] == 1000.0

    def test_empty_title(self, svc: TaskService) -> None:
        result = svc.add("   ")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.message == "title is required"

    def test_invalid_enum(self, svc: TaskService) -> None:
        result = svc.add("T", priority="critical")
        assert result.error is not None
        assert "invalid priority 'critical'" in result.error.message

    @pytest.mark.parametrize(
        ("task_id", "fragment"),
        [("short", "exactly 15 characters"), ("ABCDEFGHIJ12345", "lowercase letters")],
    )
    def test_invalid_custom_id(self, svc: TaskService, task_id: str, fragment: str) -> None:
        result = svc.add("T", task_id=task_id)
        assert result.error is not None
        assert fragment in result.error.message

    def test_custom_id_is_idempotent(self, workspace: Workspace, svc: TaskService) -> None:
        first = svc.add("T", task_id="abcdefghij12345")
        again = svc.add("T again", task_id="abcdefghij12345")
        assert again.ok
        assert again.data["existing"] is True
        assert again.data["title"] == "T"
        assert len(workspace.tasks.list_tasks()) == 1
        assert first.data["id"] == again.data["id"]

    def test_labels_and_parent(self, svc: TaskService) -> None:
        parent = svc.add("Epic").data
        child = svc.add("Child", labels=["ui", "ui", "api"], parent=parent["display_id"]).data
        assert child["labels"] == ["ui", "api"]
        assert child["parent"] == parent["id"]

    def test_unusable_default_board_warns(self, tmp_path: Path) -> None:
        settings = KanbanSettings.from_cli(root=tmp_path, direct=True, defaults={"board": "NOPE"})
        ws = Workspace(settings)
        try:
            result = TaskService(ws).add("T")
            assert result.ok
            assert any("default board 'NOPE'" in w for w in result.warnings)
        finally:
            ws.close()

    def test_created_by(self, svc: TaskService) -> None:
        assert svc.add("T").data["created_by"] == "cli"
        by_agent = svc.add("T2", agent="planner").data
        assert by_agent["created_by"] == "agent"
        assert by_agent["created_by_agent"] == "planner"
        assert svc.add("T3", created_by="user").data["created_by"] == "user"


class TestAddBatch:
    def test_collects_failures(self, svc: TaskService) -> None:
        result = svc.add_batch(
            [{"title": "One", "priority": "high"}, {"title": ""}, {"title": "Bad", "type": "epic"}]
        )
        assert result.ok
        assert result.data["created"] == 1
        assert result.data["failed"] == 2
        assert result.data["errors"][0] == "task 2: title is required"
        assert result.data["tasks"][0]["priority"] == "high"
        assert result.meta == {"paths": ["direct"]}

    def test_empty_input(self, svc: TaskService) -> None:
        result = svc.add_batch([])
        assert result.error is not None
        assert result.error.message == "no tasks found in input"


class TestMove:
    def test_column_change_records_history(self, workspace: Workspace, svc: TaskService) -> None:
        task = svc.add("Move me").data
        result = svc.move(task["id"], "in_progress")
        assert result.ok, result.error
        assert result.data["from_column"] == "backlog"
        stored = workspace.tasks.get(task["id"])
        assert stored is not None
        assert stored.column == "in_progress"
        assert stored.position == 1000.0
        assert len(stored.history) == 2
        last = stored.history.last
        assert last is not None
        assert last.action == "moved"
        assert last.changes is not None
        assert last.changes["column"] == {"from": "backlog", "to": "in_progress"}

    def test_position_top(self, workspace: Workspace, svc: TaskService) -> None:
        a = svc.add("A", column="todo").data
        b = svc.add("B", column="todo").data
        svc.move(b["id"], position=0)
        assert [t.id for t in workspace.tasks.list_tasks(column="todo")] == [b["id"], a["id"]]

    def test_after_and_before(self, workspace: Workspace, svc: TaskService) -> None:
        a = svc.add("Alpha", column="todo").data
        b = svc.add("Bravo", column="todo").data
        c = svc.add("Charlie", column="review").data
        svc.move(c["id"], after=a["id"])
        assert [t.title for t in workspace.tasks.list_tasks(column="todo")] == [
            "Alpha",
            "Charlie",
            "Bravo",
        ]
        svc.move(b["id"], before="Alpha")
        assert [t.title for t in workspace.tasks.list_tasks(column="todo")] == [
            "Bravo",
            "Alpha",
            "Charlie",
        ]

    def test_after_and_before_together(self, svc: TaskService) -> None:
        a = svc.add("A").data
        result = svc.move(a["id"], after="x", before="y")
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"

    def test_invalid_position(self, svc: TaskService) -> None:
        a = svc.add("A").data
        result = svc.move(a["id"], "todo", position=-5)
        assert result.error is not None
        assert result.error.message == "invalid position -5, use 0 for top or -1 for bottom"

    def test_ambiguous_reference(self, svc: TaskService) -> None:
        svc.add("Login page")
        svc.add("Login API")
        result = svc.move("login", "todo")
        assert result.error is not None
        assert result.error.code == "AMBIGUOUS"
        assert len(result.error.detail["candidates"]) == 2

    def test_not_found(self, svc: TaskService) -> None:
        result = svc.move("nope", "todo")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestUpdate:
    def test_fields_and_history(self, workspace: Workspace, svc: TaskService) -> None:
        task = svc.add("Old", labels=["a", "b"]).data
        result = svc.update(
            task["id"], title="New", priority="urgent", add_labels=["c"], remove_labels=["a"]
        )
        assert result.ok, result.error
        assert result.data["changed"] == ["labels", "priority", "title"]
        stored = workspace.tasks.get(task["id"])
        assert stored is not None
        assert stored.title == "New"
        assert stored.labels == ["b", "c"]
        assert stored.history.last is not None
        assert stored.history.last.action == "updated"

    def test_no_changes(self, svc: TaskService) -> None:
        task = svc.add("T").data
        result = svc.update(task["id"])
        assert result.error is not None
        assert result.error.message == "no changes specified"

    def test_empty_title(self, svc: TaskService) -> None:
        task = svc.add("T").data
        result = svc.update(task["id"], title=" ")
        assert result.error is not None
        assert result.error.message == "title cannot be empty"

    def test_blocked_by_add_and_remove(self, workspace: Workspace, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        b = svc.add("Bravo").data
        assert svc.update(b["id"], add_blocked_by=["Alpha"]).data["blocked_by"] == [a["id"]]
        assert svc.update(b["id"], remove_blocked_by=[a["display_id"]]).data["blocked_by"] == []

    def test_cycle_rejected_before_any_write(self, workspace: Workspace, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        b = svc.add("Bravo").data
        svc.update(b["id"], add_blocked_by=[a["id"]])
        result = svc.update(a["id"], add_blocked_by=[b["id"]], title="Renamed")
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert "circular dependency detected" in result.error.message
        stored_a = workspace.tasks.get(a["id"])
        stored_b = workspace.tasks.get(b["id"])
        assert stored_a is not None
        assert stored_b is not None
        assert stored_a.blocked_by == []
        assert stored_a.title == "Alpha"
        assert stored_b.blocked_by == [a["id"]]

    def test_self_parent_rejected(self, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        result = svc.update(a["id"], parent=a["id"])
        assert result.error is not None
        assert result.error.message == "task cannot be its own parent"

    def test_clear_parent(self, svc: TaskService) -> None:
        parent = svc.add("Epic").data
        child = svc.add("Child", parent=parent["id"]).data
        assert svc.update(child["id"], parent="").data["parent"] is None


class TestDelete:
    def test_delete_leaves_dangling_blockers(self, workspace: Workspace, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        b = svc.add("Bravo").data
        svc.update(b["id"], add_blocked_by=[a["id"]])
        result = svc.delete(a["id"])
        assert result.ok
        assert result.data["deleted"] is True
        assert not workspace.tasks.exists(a["id"])
        stored_b = workspace.tasks.get(b["id"])
        assert stored_b is not None
        assert stored_b.blocked_by == [a["id"]]

    def test_delete_missing(self, svc: TaskService) -> None:
        assert svc.delete("nothing").error is not None


class TestBlock:
    def test_moves_and_comments_together(self, workspace: Workspace, svc: TaskService) -> None:
        task = svc.add("Decide", column="in_progress").data
        result = svc.block(task["id"], "  Which provider?  ", agent="planner")
        assert result.ok, result.error
        assert result.data["column"] == "need_input"
        assert result.data["from_column"] == "in_progress"
        comments = workspace.comments.list_for_task(task["id"])
        assert [c.content for c in comments] == ["Which provider?"]
        assert comments[0].author_type == "agent"
        assert comments[0].author_id == "planner"
        assert comments[0].metadata == {"action": "block_question"}
        stored = workspace.tasks.get(task["id"])
        assert stored is not None
        assert stored.history.last is not None
        assert stored.history.last.action == "blocked"

    def test_default_agent(self, workspace: Workspace, svc: TaskService) -> None:
        task = svc.add("Decide").data
        svc.block(task["id"], "Why?")
        assert workspace.comments.list_for_task(task["id"])[0].author_id == "agent"

    def test_already_blocked(self, svc: TaskService) -> None:
        task = svc.add("Decide").data
        svc.block(task["id"], "Q1")
        result = svc.block(task["id"], "Q2")
        assert result.error is not None
        assert "is already blocked (in need_input)" in result.error.message

    def test_done_task(self, svc: TaskService) -> None:
        task = svc.add("Finished", column="done").data
        result = svc.block(task["id"], "Q")
        assert result.error is not None
        assert result.error.message == "cannot block a completed task"

    def test_empty_question(self, svc: TaskService) -> None:
        task = svc.add("T").data
        result = svc.block(task["id"], "  ")
        assert result.error is not None
        assert result.error.message == "question cannot be empty"


class TestResume:
    def test_back_to_bottom_of_in_progress(self, workspace: Workspace, svc: TaskService) -> None:
        svc.add("Already running", column="in_progress")
        task = svc.add("Decide", column="in_progress").data
        svc.block(task["id"], "Which provider?")

        result = svc.resume(task["display_id"], agent="planner")
        assert result.ok, result.error
        assert result.data["column"] == "in_progress"
        assert result.data["from_column"] == "need_input"
        assert result.data["position"] == 2000.0
        assert result.meta == {"path": "direct"}

        stored = workspace.tasks.get(task["id"])
        assert stored is not None
        actions = [e.action for e in stored.history.entries]
        assert actions == ["created", "blocked", "resumed"]
        last = stored.history.last
        assert last is not None
        assert last.actor_detail == "planner"
        assert last.changes["column"] == {"from": "need_input", "to": "in_progress"}

    def test_only_need_input(self, workspace: Workspace, svc: TaskService) -> None:
        task = svc.add("Running", column="todo").data
        result = svc.resume(task["id"])
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.message == "task DEF-1 is not in need_input state (current: todo)"
        stored = workspace.tasks.get(task["id"])
        assert stored is not None
        assert [e.action for e in stored.history.entries] == ["created"]

    def test_not_found(self, svc: TaskService) -> None:
        result = svc.resume("nothing-like-this")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestComment:
    def test_human_comment_with_mentions(
        self, workspace: Workspace, svc: TaskService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("USER", "dana")
        task = svc.add("T").data
        result = svc.comment(task["id"], "ping @alice and @bob.smith, @alice")
        assert result.ok, result.error
        assert result.data["author_type"] == "human"
        assert result.data["author_id"] == "dana"
        assert result.data["mentions"] == ["alice", "bob.smith"]

    def test_agent_comment(self, svc: TaskService) -> None:
        task = svc.add("T").data
        result = svc.comment(task["id"], "done", agent="reviewer")
        assert result.data["author_type"] == "agent"
        assert result.data["author_id"] == "reviewer"

    def test_empty_text(self, svc: TaskService) -> None:
        task = svc.add("T").data
        result = svc.comment(task["id"], "")
        assert result.error is not None
        assert result.error.message == "comment text cannot be empty"

    def test_extract_mentions(self) -> None:
        assert extract_mentions("no mentions") == []


class TestReads:
    def test_show_includes_blockers_and_comments(self, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        b = svc.add("Bravo").data
        svc.update(b["id"], add_blocked_by=[a["id"]])
        svc.comment(b["id"], "note", author="sam")
        data = svc.show(b["display_id"]).data
        assert data["blockers"] == [
            {"id": a["id"], "short_id": a["id"][:8], "title": "Alpha", "column": "backlog"}
        ]
        assert [c["content"] for c in data["comments"]] == ["note"]
        assert data["waiting_on"] == [a["id"]]

    def test_show_waiting_on_is_transitive(self, svc: TaskService) -> None:
        a = svc.add("Alpha").data
        b = svc.add("Bravo").data
        c = svc.add("Charlie").data
        svc.update(b["id"], add_blocked_by=[a["id"]])
        svc.update(c["id"], add_blocked_by=[b["id"]])
        data = svc.show(c["id"]).data
        assert [blocker["id"] for blocker in data["blockers"]] == [b["id"]]
        assert data["waiting_on"] == sorted([a["id"], b["id"]])
        assert svc.show(a["id"]).data["waiting_on"] == []

    def test_list_filters(self, workspace: Workspace, svc: TaskService) -> None:
        add_board(workspace, "Main", "MAIN")
        add_board(workspace, "Ops", "OPS")
        svc.add("One", column="todo", priority="high", labels=["x"], board="MAIN")
        svc.add("Two", column="todo", board="MAIN")
        svc.add("Three", column="todo", board="OPS")
        assert svc.list_tasks(column="todo").data["count"] == 3
        assert [i["title"] for i in svc.list_tasks(priority="high").data["items"]] == ["One"]
        assert [i["title"] for i in svc.list_tasks(label="x").data["items"]] == ["One"]
        assert [i["display_id"] for i in svc.list_tasks(board="ops").data["items"]] == ["OPS-1"]
        assert svc.list_tasks(limit=1).data["count"] == 1

    def test_list_bad_filter(self, svc: TaskService) -> None:
        assert svc.list_tasks(column="nope").error is not None


class TestServerPath:
    def test_add_goes_through_api(self, server_workspace) -> None:
        posted: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            health = health_ok(request)
            if health is not None:
                return health
            posted.append(request)
            return httpx.Response(200, json={"id": "x"})

        ws = server_workspace(handler)
        result = TaskService(ws).add("Via server")
        assert result.ok, result.error
        assert result.meta == {"path": "api"}
        assert len(posted) == 1
        assert ws.tasks.list_tasks() == []

    def test_server_error_falls_back_with_warning(self, server_workspace) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return health_ok(request) or httpx.Response(500, json={"message": "db locked"})

        ws = server_workspace(handler)
        result = TaskService(ws).add("Fallback")
        assert result.ok, result.error
        assert result.meta == {"path": "direct-fallback"}
        assert len(result.warnings) == 1
        assert "db locked" in result.warnings[0]
        assert len(ws.tasks.list_tasks()) == 1

    def test_validation_error_returns_failure(self, server_workspace) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return health_ok(request) or httpx.Response(400, json={"message": "bad title"})

        ws = server_workspace(handler)
        result = TaskService(ws).add("Rejected")
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.detail["status_code"] == 400
        assert ws.tasks.list_tasks() == []


def test_end_to_end_lifecycle(workspace: Workspace) -> None:
    """Create, resolve by id, move, then a rejected reverse block."""
    svc = TaskService(workspace)
    task = add_task(workspace, "Lifecycle")
    other = add_task(workspace, "Other")
    assert svc.show(task["id"]).data["id"] == task["id"]

    moved = svc.move(task["id"], "todo")
    assert moved.data["column"] == "todo"
    assert moved.data["position"] == 1000.0
    assert len(moved.data["history"]["entries"]) == 2

    svc.update(other["id"], add_blocked_by=[task["id"]])
    rejected = svc.update(task["id"], add_blocked_by=[other["id"]])
    assert not rejected.ok
    assert workspace.tasks.blocked_by_of(task["id"]) == []
    assert workspace.tasks.blocked_by_of(other["id"]) == [task["id"]]
