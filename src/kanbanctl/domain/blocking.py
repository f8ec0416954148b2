"""Blocked-by edge arithmetic and cycle detection.

A task's ``blocked_by`` set lists the tasks that must finish first. The
directed graph those edges form must stay acyclic, and no task may block
itself.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Sequence

# Returns a task's blocked_by ids, or None when the id no longer resolves.
type BlockersLookup = Callable[[str], Sequence[str] | None]


def update_blocked_by(
    current: Iterable[str],
    to_add: Iterable[str],
    to_remove: Iterable[str],
    self_id: str,
) -> list[str]:
    """Compute ``(current - to_remove) | to_add`` without *self_id*.

    Order of first appearance is preserved so history diffs stay stable.

    Examples:
        >>> update_blocked_by(["b", "c"], ["d"], ["c"], "t1")
        ['b', 'd']
        >>> update_blocked_by([], ["t1"], [], "t1")
        []
    """
    removed = set(to_remove)
    result: list[str] = []
    seen: set[str] = set()
    for task_id in current:
        if task_id in removed or task_id == self_id or task_id in seen:
            continue
        seen.add(task_id)
        result.append(task_id)
    for task_id in to_add:
        if task_id == self_id or task_id in seen:
            continue
        seen.add(task_id)
        result.append(task_id)
    return result


def has_cycle(target_id: str, blocker_blocked_by: Iterable[str], lookup: BlockersLookup) -> bool:
    """Would adding the blocker to *target_id*'s blocked_by set close a cycle?

    Breadth-first walk starting from the blocker's own ``blocked_by`` ids
    and continuing through every visited task's ``blocked_by``. Returns True
    as soon as *target_id* is reached, i.e. the blocker already waits on
    the target directly or transitively.

    Ids that *lookup* cannot resolve (deleted tasks) are skipped. The
    visited set keeps a pre-existing cycle elsewhere from looping forever.
    """
    queue: deque[str] = deque(blocker_blocked_by)
    visited: set[str] = set()
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        if current == target_id:
            return True
        blockers = lookup(current)
        if blockers is None:
            continue
        queue.extend(blockers)
    return False


def added_edges(previous: Iterable[str], updated: Iterable[str]) -> list[str]:
    """Blocker ids present in *updated* but not in *previous*, in order."""
    before = set(previous)
    return [task_id for task_id in updated if task_id not in before]
