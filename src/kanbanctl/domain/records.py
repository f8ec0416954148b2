"""Task, board, and comment records.

:class:`TaskRecord` is the fully-formed record handed from the computing
components (resolver, allocator, guard) to the mutation executor. Shared
mutation helpers never take a record directly; they take
:class:`TaskFields`, the narrow view of the fields they read and write.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, Field

from kanbanctl.domain.history import History, HistoryEntry
from kanbanctl.domain.ids import format_display_id, short_id
from kanbanctl.domain.types import AuthorType, Column, CreatedBy, Priority, TaskType


class TaskFields(Protocol):
    """Field access needed by the allocator, guard, and executor helpers."""

    @property
    def id(self) -> str: ...

    column: Column
    position: float
    blocked_by: list[str]
    history: History


class TaskRecord(BaseModel):
    """A task as stored in either persistence path."""

    model_config = {"validate_assignment": True}

    id: str
    title: str
    description: str = ""
    type: TaskType = TaskType.FEATURE
    priority: Priority = Priority.MEDIUM
    column: Column = Column.BACKLOG
    position: float = 0.0
    labels: list[str] = Field(default_factory=list)
    blocked_by: list[str] = Field(default_factory=list)
    parent: str | None = None
    board_id: str | None = None
    seq: int | None = None
    created_by: CreatedBy = CreatedBy.CLI
    created_by_agent: str = ""
    history: History = Field(default_factory=History)
    created: str = ""
    updated: str = ""

    @property
    def short_id(self) -> str:
        return short_id(self.id)


class BoardRecord(BaseModel):
    """A board and its sequence counter."""

    model_config = {"frozen": True}

    id: str
    name: str
    prefix: str
    columns: list[str] = Field(default_factory=list)
    color: str = ""
    next_seq: int = 1

    def display_id(self, seq: int) -> str:
        return format_display_id(self.prefix, seq)


class CommentRecord(BaseModel):
    model_config = {"frozen": True}

    id: str
    task_id: str
    content: str
    author_type: AuthorType = AuthorType.HUMAN
    author_id: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created: str = ""


def record_history(
    task: TaskFields,
    action: str,
    *,
    actor: str = "cli",
    actor_detail: str = "",
    changes: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Append one history entry to *task* and return it."""
    entry = HistoryEntry(action=action, actor=actor, actor_detail=actor_detail, changes=changes)
    task.history = task.history.append(entry)
    return entry


def task_display_id(task: TaskRecord, board: BoardRecord | None) -> str:
    """Display id when the task is boarded, otherwise its short id."""
    if board is not None and task.seq:
        return board.display_id(task.seq)
    return task.short_id
