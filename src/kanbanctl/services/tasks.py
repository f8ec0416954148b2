"""TaskService: every task-level command.

Pipeline per mutation: RESOLVE → VALIDATE → COMPUTE → PERSIST → RESPOND.

Resolution, position allocation, and blocking validation all finish
before anything is persisted; the executor then writes the fully formed
record through the board server or directly. ``block`` is the exception:
its column change and question comment must land together, so it writes
both in one local transaction.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from kanbanctl.domain.history import change, history_timestamp
from kanbanctl.domain.ids import generate_task_id, short_id, validate_task_id
from kanbanctl.domain.records import (
    BoardRecord,
    CommentRecord,
    TaskRecord,
    record_history,
    task_display_id,
)
from kanbanctl.domain.types import AuthorType, Column, CreatedBy, Priority, TaskType, parse_enum
from kanbanctl.services.base import BaseService
from kanbanctl.services.blocking import BlockingGuard
from kanbanctl.services.boards import DEFAULT_BOARD_NAME, DEFAULT_BOARD_PREFIX, create_board
from kanbanctl.services.errors import (
    AmbiguousReferenceError,
    BoardNotFoundError,
    KanbanError,
    StorageUnavailableError,
    ValidationRejectedError,
)
from kanbanctl.services.executor import ExecutionReport, MutationExecutor
from kanbanctl.services.position import PositionAllocator
from kanbanctl.services.result import ServiceResult
from kanbanctl.services.telemetry import traced

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from kanbanctl.infrastructure.workspace import Workspace

_MENTION_RE = re.compile(r"@([\w.-]+)")


def _parse(enum_cls: Any, value: str, label: str) -> Any:
    try:
        return parse_enum(enum_cls, value, label=label)
    except ValueError as exc:
        raise ValidationRejectedError(str(exc)) from exc


def _merge_labels(current: Iterable[str], add: Iterable[str], remove: Iterable[str]) -> list[str]:
    """``(current - remove) | add``, keeping first-seen order."""
    added = list(add)
    removed = set(remove) - set(added)
    merged: list[str] = []
    for label in (*current, *added):
        if label and label not in removed and label not in merged:
            merged.append(label)
    return merged


def extract_mentions(text: str) -> list[str]:
    """``@name`` mentions in comment text, de-duplicated in order."""
    seen: list[str] = []
    for name in _MENTION_RE.findall(text):
        if name not in seen:
            seen.append(name)
    return seen


class TaskService(BaseService):
    """Task creation, movement, updates, blocking, and comments."""

    def __init__(self, workspace: Workspace) -> None:
        super().__init__(workspace)
        ws = self._workspace
        self._allocator = PositionAllocator(ws.tasks, ws.settings.position)
        self._guard = BlockingGuard(ws.tasks, self._resolver)
        self._executor = MutationExecutor(ws.tasks, ws.api_client, direct=ws.settings.direct)

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------

    def _board_of(self, task: TaskRecord) -> BoardRecord | None:
        return self._workspace.boards.get(task.board_id) if task.board_id else None

    def _task_data(self, task: TaskRecord, board: BoardRecord | None = None) -> dict[str, Any]:
        board = board if board is not None else self._board_of(task)
        return {
            **task.model_dump(mode="json"),
            "short_id": task.short_id,
            "display_id": task_display_id(task, board),
        }

    @staticmethod
    def _persisted(
        op: str,
        data: dict[str, Any],
        report: ExecutionReport,
        warnings: Sequence[str] = (),
    ) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=op,
            data=data,
            warnings=[*warnings, *report.warnings],
            meta={"path": str(report.path)},
        )

    # ------------------------------------------------------------------
    # add
    # ------------------------------------------------------------------

    def _board_for_add(self, ref: str | None, warnings: list[str]) -> BoardRecord:
        """Explicit board, else the configured default, else the first board, else a new one."""
        if ref:
            return self._resolver.resolve_board(ref)

        default = self._workspace.settings.defaults.board
        if default:
            try:
                return self._resolver.resolve_board(default)
            except (BoardNotFoundError, AmbiguousReferenceError) as exc:
                logger.warning("Default board %r not usable: %s", default, exc.message)
                warnings.append(f"default board '{default}' not usable: {exc.message}")

        first = self._workspace.boards.first()
        if first is not None:
            return first
        return create_board(
            self._workspace.boards, name=DEFAULT_BOARD_NAME, prefix=DEFAULT_BOARD_PREFIX
        )

    def _build_task(
        self,
        title: str,
        board: BoardRecord,
        *,
        task_id: str,
        description: str,
        task_type: str,
        priority: str,
        column: str,
        labels: Iterable[str],
        created_by: CreatedBy,
        agent: str,
        parent: str | None,
    ) -> TaskRecord:
        """Assemble a new task: resolve parent, claim seq, allocate position."""
        kind = _parse(TaskType, task_type, "type")
        prio = _parse(Priority, priority, "priority")
        col = _parse(Column, column, "column")
        parent_id = self._resolver.must_resolve(parent).id if parent else None

        seq = self._workspace.boards.claim_seq(board.id)
        now = history_timestamp()
        task = TaskRecord(
            id=task_id,
            title=title,
            description=description,
            type=kind,
            priority=prio,
            column=col,
            position=self._allocator.next_position(col, board_id=board.id),
            labels=_merge_labels([], labels, []),
            parent=parent_id,
            board_id=board.id,
            seq=seq,
            created_by=created_by,
            created_by_agent=agent,
            created=now,
            updated=now,
        )
        record_history(task, "created", actor=str(created_by), actor_detail=agent)
        return task

    @staticmethod
    def _creator(created_by: str | None, agent: str) -> CreatedBy:
        if created_by:
            return _parse(CreatedBy, created_by, "created-by")
        return CreatedBy.AGENT if agent else CreatedBy.CLI

    def _claim_id(self, custom_id: str | None) -> tuple[str, TaskRecord | None]:
        """Validate a caller-supplied id; an existing task with it is returned as-is."""
        if not custom_id:
            return generate_task_id(), None
        if not validate_task_id(custom_id):
            if len(custom_id) != 15:
                msg = f"invalid id '{custom_id}': must be exactly 15 characters (got {len(custom_id)})"
            else:
                msg = f"invalid id '{custom_id}': must contain only lowercase letters (a-z) and digits (0-9)"
            raise ValidationRejectedError(msg)
        return custom_id, self._workspace.tasks.get(custom_id)

    @traced
    def add(
        self,
        title: str,
        *,
        description: str = "",
        task_type: str = TaskType.FEATURE,
        priority: str = Priority.MEDIUM,
        column: str = Column.BACKLOG,
        labels: Iterable[str] = (),
        task_id: str | None = None,
        created_by: str | None = None,
        agent: str = "",
        board: str | None = None,
        parent: str | None = None,
    ) -> ServiceResult:
        """Create one task at the bottom of its column.

        A caller-supplied *task_id* that already exists returns the existing
        task unchanged, so retried creates are idempotent.
        """
        op = "add"
        warnings: list[str] = []
        try:
            title = title.strip()
            if not title:
                msg = "title is required"
                raise ValidationRejectedError(msg)
            creator = self._creator(created_by, agent)
            new_id, existing = self._claim_id(task_id)
            if existing is not None:
                return ServiceResult(
                    ok=True, op=op, data={**self._task_data(existing), "existing": True}
                )

            target_board = self._board_for_add(board, warnings)
            task = self._build_task(
                title,
                target_board,
                task_id=new_id,
                description=description,
                task_type=task_type,
                priority=priority,
                column=column,
                labels=labels,
                created_by=creator,
                agent=agent,
                parent=parent,
            )
            report = self._executor.create(task)
        except KanbanError as exc:
            return self._fail(op, exc, warnings=warnings)

        return self._persisted(op, self._task_data(task, target_board), report, warnings)

    @traced
    def add_batch(
        self,
        inputs: Sequence[Mapping[str, Any]],
        *,
        agent: str = "",
        board: str | None = None,
    ) -> ServiceResult:
        """Create many tasks on one board; failures are collected per item."""
        op = "add_batch"
        warnings: list[str] = []
        if not inputs:
            return self._fail(op, ValidationRejectedError("no tasks found in input"))
        try:
            target_board = self._board_for_add(board, warnings)
        except KanbanError as exc:
            return self._fail(op, exc, warnings=warnings)

        creator = CreatedBy.AGENT if agent else CreatedBy.CLI
        created: list[dict[str, Any]] = []
        errors: list[str] = []
        paths: set[str] = set()
        for index, item in enumerate(inputs, start=1):
            title = str(item.get("title") or "").strip()
            if not title:
                errors.append(f"task {index}: title is required")
                continue
            try:
                new_id, existing = self._claim_id(item.get("id"))
                if existing is not None:
                    created.append({**self._task_data(existing), "existing": True})
                    continue
                task = self._build_task(
                    title,
                    target_board,
                    task_id=new_id,
                    description=str(item.get("description") or ""),
                    task_type=str(item.get("type") or TaskType.FEATURE),
                    priority=str(item.get("priority") or Priority.MEDIUM),
                    column=str(item.get("column") or Column.BACKLOG),
                    labels=item.get("labels") or [],
                    created_by=creator,
                    agent=agent,
                    parent=item.get("parent") or None,
                )
                report = self._executor.create(task)
            except KanbanError as exc:
                errors.append(f"task {index} ({title}): {exc.message}")
                continue
            warnings.extend(report.warnings)
            paths.add(str(report.path))
            created.append(self._task_data(task, target_board))

        return ServiceResult(
            ok=True,
            op=op,
            data={"created": len(created), "failed": len(errors), "tasks": created, "errors": errors},
            warnings=warnings,
            meta={"paths": sorted(paths)},
        )

    # ------------------------------------------------------------------
    # move
    # ------------------------------------------------------------------

    @traced
    def move(
        self,
        ref: str,
        column: str | None = None,
        *,
        position: int = -1,
        after: str | None = None,
        before: str | None = None,
        agent: str = "",
    ) -> ServiceResult:
        """Move a task to a column and/or position.

        ``after``/``before`` place it next to another task, taking that
        task's column unless *column* is given. Otherwise *position* is an
        index: 0 is the top, -1 the bottom.
        """
        op = "move"
        try:
            task = self._resolver.must_resolve(ref)
            target = _parse(Column, column, "column") if column else task.column
            if after and before:
                msg = "after and before cannot be combined"
                raise ValidationRejectedError(msg)

            anchor_ref = after or before
            if anchor_ref:
                anchor = self._resolver.must_resolve(anchor_ref)
                if after:
                    new_position = self._allocator.position_after(anchor)
                else:
                    new_position = self._allocator.position_before(anchor)
                if not column:
                    target = anchor.column
            elif position >= 0:
                new_position = self._allocator.position_at_index(
                    target, position, board_id=task.board_id
                )
            elif position == -1:
                new_position = self._allocator.next_position(target, board_id=task.board_id)
            else:
                msg = f"invalid position {position}, use 0 for top or -1 for bottom"
                raise ValidationRejectedError(msg)

            old_column, old_position = task.column, task.position
            task.column = target
            task.position = new_position
            task.updated = history_timestamp()
            record_history(
                task,
                "moved",
                actor_detail=agent,
                changes={
                    "column": change(str(old_column), str(target)),
                    "position": change(old_position, new_position),
                },
            )
            report = self._executor.update(task)
        except KanbanError as exc:
            return self._fail(op, exc)

        data = {**self._task_data(task), "from_column": str(old_column)}
        return self._persisted(op, data, report)

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    @traced
    def update(
        self,
        ref: str,
        *,
        title: str | None = None,
        description: str | None = None,
        task_type: str | None = None,
        priority: str | None = None,
        add_labels: Sequence[str] = (),
        remove_labels: Sequence[str] = (),
        add_blocked_by: Sequence[str] = (),
        remove_blocked_by: Sequence[str] = (),
        parent: str | None = None,
        agent: str = "",
    ) -> ServiceResult:
        """Change the given fields; ``None`` leaves a field alone.

        ``description=""`` and ``parent=""`` clear those fields. Blocking
        changes are validated before anything is written.
        """
        op = "update"
        try:
            task = self._resolver.must_resolve(ref)
            changes: dict[str, Any] = {}

            if title is not None:
                if not title.strip():
                    msg = "title cannot be empty"
                    raise ValidationRejectedError(msg)
                changes["title"] = change(task.title, title)
                task.title = title
            if description is not None:
                changes["description"] = change(task.description, description)
                task.description = description
            if task_type is not None:
                kind = _parse(TaskType, task_type, "type")
                changes["type"] = change(str(task.type), str(kind))
                task.type = kind
            if priority is not None:
                prio = _parse(Priority, priority, "priority")
                changes["priority"] = change(str(task.priority), str(prio))
                task.priority = prio
            if add_labels or remove_labels:
                labels = _merge_labels(task.labels, add_labels, remove_labels)
                changes["labels"] = change(list(task.labels), labels)
                task.labels = labels
            if add_blocked_by or remove_blocked_by:
                blocked_by = self._guard.apply(task, add_blocked_by, remove_blocked_by)
                changes["blocked_by"] = change(list(task.blocked_by), blocked_by)
                task.blocked_by = blocked_by
            if parent is not None:
                parent_id = self._resolver.must_resolve(parent).id if parent else None
                if parent_id == task.id:
                    msg = "task cannot be its own parent"
                    raise ValidationRejectedError(msg)
                changes["parent"] = change(task.parent, parent_id)
                task.parent = parent_id

            if not changes:
                msg = "no changes specified"
                raise ValidationRejectedError(msg)

            task.updated = history_timestamp()
            record_history(task, "updated", actor_detail=agent, changes=changes)
            report = self._executor.update(task)
        except KanbanError as exc:
            return self._fail(op, exc)

        data = {**self._task_data(task), "changed": sorted(changes)}
        return self._persisted(op, data, report)

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------

    @traced
    def delete(self, ref: str) -> ServiceResult:
        """Hard-delete a task. Other tasks' blocked_by entries for it are left dangling."""
        op = "delete"
        try:
            task = self._resolver.must_resolve(ref)
            data = {
                "id": task.id,
                "short_id": task.short_id,
                "display_id": task_display_id(task, self._board_of(task)),
                "title": task.title,
                "deleted": True,
            }
            report = self._executor.delete(task)
        except KanbanError as exc:
            return self._fail(op, exc)
        return self._persisted(op, data, report)

    # ------------------------------------------------------------------
    # block / comment
    # ------------------------------------------------------------------

    @traced
    def block(self, ref: str, question: str, *, agent: str = "") -> ServiceResult:
        """Move a task to need_input and record the question as a comment, atomically."""
        op = "block"
        agent = agent or self._workspace.settings.defaults.agent
        try:
            question = question.strip()
            if not question:
                msg = "question cannot be empty"
                raise ValidationRejectedError(msg)
            task = self._resolver.must_resolve(ref)
            if task.column == Column.NEED_INPUT:
                msg = f"task {task.short_id} is already blocked (in need_input)"
                raise ValidationRejectedError(msg)
            if task.column == Column.DONE:
                msg = "cannot block a completed task"
                raise ValidationRejectedError(msg)

            old_column = task.column
            now = history_timestamp()
            task.column = Column.NEED_INPUT
            task.updated = now
            record_history(
                task,
                "blocked",
                actor_detail=agent,
                changes={
                    "column": change(str(old_column), str(Column.NEED_INPUT)),
                    "reason": question,
                },
            )
            comment = CommentRecord(
                id=generate_task_id(),
                task_id=task.id,
                content=question,
                author_type=AuthorType.AGENT,
                author_id=agent,
                metadata={"action": "block_question"},
                created=now,
            )
            try:
                with self._workspace.transaction() as txn:
                    txn.tasks.update(task)
                    txn.comments.insert(comment)
            except SQLAlchemyError as exc:
                msg = f"failed to block task: {exc}"
                raise StorageUnavailableError(msg) from exc
        except KanbanError as exc:
            return self._fail(op, exc)

        data = {
            **self._task_data(task),
            "from_column": str(old_column),
            "comment_id": comment.id,
            "question": question,
        }
        return ServiceResult(ok=True, op=op, data=data, meta={"path": "direct"})

    @traced
    def resume(self, ref: str, *, agent: str = "") -> ServiceResult:
        """Return a task from need_input to the bottom of in_progress."""
        op = "resume"
        try:
            task = self._resolver.must_resolve(ref)
            display_id = task_display_id(task, self._board_of(task))
            if task.column != Column.NEED_INPUT:
                msg = f"task {display_id} is not in need_input state (current: {task.column})"
                raise ValidationRejectedError(msg)

            old_position = task.position
            task.column = Column.IN_PROGRESS
            task.position = self._allocator.next_position(Column.IN_PROGRESS, board_id=task.board_id)
            task.updated = history_timestamp()
            record_history(
                task,
                "resumed",
                actor_detail=agent,
                changes={
                    "column": change(str(Column.NEED_INPUT), str(Column.IN_PROGRESS)),
                    "position": change(old_position, task.position),
                },
            )
            report = self._executor.update(task)
        except KanbanError as exc:
            return self._fail(op, exc)

        data = {**self._task_data(task), "from_column": str(Column.NEED_INPUT)}
        return self._persisted(op, data, report)

    def _comment_author(self, author: str | None, agent: str) -> tuple[AuthorType, str]:
        author_id = author or self._workspace.settings.defaults.author or os.environ.get("USER", "")
        if agent:
            return AuthorType.AGENT, author or agent
        return AuthorType.HUMAN, author_id

    @traced
    def comment(
        self,
        ref: str,
        text: str,
        *,
        author: str | None = None,
        agent: str = "",
    ) -> ServiceResult:
        op = "comment"
        try:
            text = text.strip()
            if not text:
                msg = "comment text cannot be empty"
                raise ValidationRejectedError(msg)
            task = self._resolver.must_resolve(ref)
            author_type, author_id = self._comment_author(author, agent)
            mentions = extract_mentions(text)
            comment = CommentRecord(
                id=generate_task_id(),
                task_id=task.id,
                content=text,
                author_type=author_type,
                author_id=author_id,
                metadata={"mentions": mentions},
                created=history_timestamp(),
            )
            try:
                self._workspace.comments.insert(comment)
            except SQLAlchemyError as exc:
                msg = f"failed to save comment: {exc}"
                raise StorageUnavailableError(msg) from exc
        except KanbanError as exc:
            return self._fail(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "comment_id": comment.id,
                "task_id": task.id,
                "display_id": task_display_id(task, self._board_of(task)),
                "author_type": str(author_type),
                "author_id": author_id,
                "mentions": mentions,
            },
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def show(self, ref: str) -> ServiceResult:
        op = "show"
        try:
            task = self._resolver.must_resolve(ref)
        except KanbanError as exc:
            return self._fail(op, exc)

        blockers = []
        for blocker_id in task.blocked_by:
            blocker = self._workspace.tasks.get(blocker_id)
            blockers.append(
                {
                    "id": blocker_id,
                    "short_id": short_id(blocker_id),
                    "title": blocker.title if blocker else None,
                    "column": str(blocker.column) if blocker else None,
                }
            )
        graph = self._workspace.graph
        graph.invalidate()
        waiting_on = sorted(graph.blockers_of(task.id))
        comments = [c.model_dump(mode="json") for c in self._workspace.comments.list_for_task(task.id)]
        data = {
            **self._task_data(task),
            "blockers": blockers,
            "waiting_on": waiting_on,
            "comments": comments,
        }
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def list_tasks(
        self,
        *,
        column: str | None = None,
        board: str | None = None,
        priority: str | None = None,
        task_type: str | None = None,
        label: str | None = None,
        limit: int | None = None,
    ) -> ServiceResult:
        """Tasks in position order, optionally filtered."""
        op = "list"
        ws = self._workspace
        try:
            col = _parse(Column, column, "column") if column else None
            prio = _parse(Priority, priority, "priority") if priority else None
            kind = _parse(TaskType, task_type, "type") if task_type else None
            board_record = self._resolver.resolve_board(board) if board else None
        except KanbanError as exc:
            return self._fail(op, exc)

        tasks = ws.tasks.list_tasks(
            column=str(col) if col else None,
            board_id=board_record.id if board_record else None,
        )
        selected = [
            t
            for t in tasks
            if (prio is None or t.priority == prio)
            and (kind is None or t.type == kind)
            and (label is None or label in t.labels)
        ]
        if limit is not None:
            selected = selected[:limit]

        boards = {b.id: b for b in ws.boards.list_all()}
        items = []
        for t in selected:
            items.append(
                {
                    "id": t.id,
                    "short_id": t.short_id,
                    "display_id": task_display_id(t, boards.get(t.board_id or "")),
                    "title": t.title,
                    "column": str(t.column),
                    "position": t.position,
                    "priority": str(t.priority),
                    "type": str(t.type),
                    "labels": list(t.labels),
                    "blocked_by": list(t.blocked_by),
                }
            )
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})
