"""BlockingGuard: validates blocked_by changes before anything is written."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kanbanctl.domain import blocking
from kanbanctl.domain.ids import short_id
from kanbanctl.services.errors import TaskNotFoundError, ValidationRejectedError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kanbanctl.domain.records import TaskFields, TaskRecord
    from kanbanctl.infrastructure.repositories import TaskRepository
    from kanbanctl.services.resolver import ReferenceResolver


class BlockingGuard:
    """Keeps the blocked_by graph free of self-edges and cycles."""

    def __init__(self, tasks: TaskRepository, resolver: ReferenceResolver) -> None:
        self._tasks = tasks
        self._resolver = resolver

    def has_cycle(self, target_id: str, blocker: TaskRecord) -> bool:
        """Would ``blocker`` in ``target.blocked_by`` make target wait on itself?"""
        return blocking.has_cycle(target_id, blocker.blocked_by, self._tasks.blocked_by_of)

    def _resolve_refs(self, refs: Iterable[str]) -> list[TaskRecord]:
        resolved: list[TaskRecord] = []
        for ref in refs:
            try:
                resolved.append(self._resolver.must_resolve(ref))
            except TaskNotFoundError as exc:
                raise TaskNotFoundError(ref, f"blocking task not found: {ref}") from exc
        return resolved

    def apply(
        self,
        task: TaskFields,
        add_refs: Iterable[str] = (),
        remove_refs: Iterable[str] = (),
    ) -> list[str]:
        """Resolve references and return *task*'s new blocked_by list.

        Does not mutate *task*; the caller assigns the result and records
        history once the whole update has been validated.

        Raises:
            TaskNotFoundError: A reference did not resolve.
            AmbiguousReferenceError: A reference matched several tasks.
            ValidationRejectedError: Self-blocking, or an added edge closes a cycle.
        """
        to_add = self._resolve_refs(add_refs)
        for blocker in to_add:
            if blocker.id == task.id:
                msg = "task cannot block itself"
                raise ValidationRejectedError(msg, detail={"task": task.id})
        to_remove = [t.id for t in self._resolve_refs(remove_refs)]

        updated = blocking.update_blocked_by(
            task.blocked_by, [t.id for t in to_add], to_remove, task.id
        )
        new_edges = set(blocking.added_edges(task.blocked_by, updated))
        for blocker in to_add:
            if blocker.id not in new_edges:
                continue
            if self.has_cycle(task.id, blocker):
                msg = (
                    f"circular dependency detected: {short_id(blocker.id)} is already "
                    f"blocked by {short_id(task.id)} (directly or indirectly)"
                )
                raise ValidationRejectedError(msg, detail={"task": task.id, "blocker": blocker.id})
        return updated
