"""Workflow enums shared by every board.

Columns are a fixed enum: boards may display a subset, but a task's
``column`` is always one of these values.
"""

from __future__ import annotations

from enum import StrEnum


class Column(StrEnum):
    """Workflow states a task moves through."""

    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    NEED_INPUT = "need_input"
    REVIEW = "review"
    DONE = "done"


class TaskType(StrEnum):
    BUG = "bug"
    FEATURE = "feature"
    CHORE = "chore"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CreatedBy(StrEnum):
    """Who created a task: a person at a terminal, an agent, or a script."""

    USER = "user"
    AGENT = "agent"
    CLI = "cli"


class AuthorType(StrEnum):
    """Comment author classification."""

    HUMAN = "human"
    AGENT = "agent"


DEFAULT_BOARD_COLUMNS: tuple[str, ...] = (
    Column.BACKLOG,
    Column.TODO,
    Column.IN_PROGRESS,
    Column.REVIEW,
    Column.DONE,
)


def parse_enum[E: StrEnum](enum_cls: type[E], value: str, *, label: str) -> E:
    """Convert *value* to *enum_cls*, raising ``ValueError`` with the allowed values."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        msg = f"invalid {label} {value!r}, must be one of: {allowed}"
        raise ValueError(msg) from None
