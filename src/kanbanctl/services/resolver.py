"""Reference resolution: turn a user-typed task or board reference into a record.

Task references are tried against four tiers in order, and the first tier
that matches anything decides the outcome:

1. exact id
2. id prefix (case-sensitive)
3. display id such as ``WRK-7``, when a board with that prefix exists
4. case-insensitive title substring

A tier with several matches is ambiguous; later tiers are not consulted.
A display-id-shaped reference whose board exists but has no such seq is
not found, and never degrades into a title search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kanbanctl.domain.ids import parse_display_id
from kanbanctl.services.errors import (
    AmbiguousReferenceError,
    BoardNotFoundError,
    TaskNotFoundError,
)

if TYPE_CHECKING:
    from kanbanctl.domain.records import BoardRecord, TaskRecord
    from kanbanctl.infrastructure.repositories import BoardRepository, TaskRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one reference.

    Exactly one of: ``task`` set (resolved), ``matches`` with two or more
    entries (ambiguous), or neither (not found).
    """

    task: TaskRecord | None = None
    matches: list[TaskRecord] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.matches) > 1

    @property
    def is_not_found(self) -> bool:
        return self.task is None and not self.matches

    @property
    def candidates(self) -> list[tuple[str, str]]:
        """``(short_id, title)`` for each ambiguous match, in lookup order."""
        return [(match.short_id, match.title) for match in self.matches]


def _from_matches(matches: list[TaskRecord]) -> Resolution:
    if len(matches) == 1:
        return Resolution(task=matches[0])
    return Resolution(matches=matches)


class ReferenceResolver:
    """Resolves task and board references against storage. Read-only."""

    def __init__(self, tasks: TaskRepository, boards: BoardRepository) -> None:
        self._tasks = tasks
        self._boards = boards

    def resolve(self, ref: str) -> Resolution:
        """Resolve *ref* to a task without raising for not-found or ambiguity."""
        ref = ref.strip()
        if not ref:
            return Resolution()

        # 1. Exact id
        task = self._tasks.get(ref)
        if task is not None:
            return Resolution(task=task)

        # 2. Id prefix
        matches = self._tasks.find_by_id_prefix(ref)
        if matches:
            return _from_matches(matches)

        # 3. Display id, only when the board exists
        parsed = parse_display_id(ref)
        if parsed is not None:
            prefix, seq = parsed
            board = self._boards.find_by_prefix(prefix)
            if board is not None:
                task = self._tasks.find_by_board_seq(board.id, seq)
                return Resolution(task=task) if task is not None else Resolution()

        # 4. Title substring
        return _from_matches(self._tasks.search_title(ref))

    def must_resolve(self, ref: str) -> TaskRecord:
        """Resolve *ref* to exactly one task.

        Raises:
            TaskNotFoundError: Nothing matched.
            AmbiguousReferenceError: More than one task matched in the deciding tier.
        """
        resolution = self.resolve(ref)
        if resolution.is_ambiguous:
            raise AmbiguousReferenceError(ref, resolution.candidates)
        if resolution.task is None:
            raise TaskNotFoundError(ref, f"no task found matching: {ref}")
        return resolution.task

    def resolve_board(self, ref: str) -> BoardRecord:
        """Resolve a board by id, prefix, name, or unique partial name.

        Raises:
            BoardNotFoundError: Nothing matched.
            AmbiguousReferenceError: The partial name matched several boards.
        """
        ref = ref.strip()
        if not ref:
            raise BoardNotFoundError(ref)

        board = (
            self._boards.get(ref)
            or self._boards.find_by_prefix(ref)
            or self._boards.find_by_name(ref)
        )
        if board is not None:
            return board

        partial = self._boards.search_name(ref)
        if len(partial) == 1:
            return partial[0]
        if partial:
            raise AmbiguousReferenceError(ref, [(b.prefix, b.name) for b in partial])
        raise BoardNotFoundError(ref)


def resolve_task(tasks: TaskRepository, boards: BoardRepository, ref: str) -> Resolution:
    """Functional form of :meth:`ReferenceResolver.resolve`."""
    return ReferenceResolver(tasks, boards).resolve(ref)


def must_resolve(tasks: TaskRepository, boards: BoardRepository, ref: str) -> TaskRecord:
    """Functional form of :meth:`ReferenceResolver.must_resolve`."""
    return ReferenceResolver(tasks, boards).must_resolve(ref)
