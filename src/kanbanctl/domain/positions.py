"""Fractional positioning within a column.

Positions are 64-bit floats separated by a fixed gap when appended, so a
task can be inserted between two neighbors by bisecting their positions
without renumbering the rest of the column.

Repeated bisection between the same pair halves the gap each time. After
roughly 50 halvings the midpoint collapses onto an endpoint (a double has
about 52 bits of relative precision). :func:`needs_rebalance` detects the
condition and :func:`rebalanced_positions` computes the even layout a
maintenance pass writes back. Neither runs on the insert path.

Every function here is pure: callers fetch positions from storage and
pass them in.
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_GAP = 1000.0
MIN_GAP = 0.001


def get_between(before: float, after: float) -> float:
    """Midpoint of two positions."""
    return (before + after) / 2.0


def next_position(positions: Iterable[float], *, gap: float = DEFAULT_GAP) -> float:
    """Position for appending to the end of a column.

    Empty column → *gap*; otherwise ``max(positions) + gap``.
    """
    existing = list(positions)
    if not existing:
        return gap
    return max(existing) + gap


def position_at_index(
    positions: Iterable[float],
    index: int,
    *,
    gap: float = DEFAULT_GAP,
) -> float:
    """Position that places a task at *index* in the column.

    - empty column → *gap*
    - ``index < 0`` or ``index >= len`` → end of column (same as :func:`next_position`)
    - ``index == 0`` → half the first position
    - otherwise → midpoint of ``positions[index - 1]`` and ``positions[index]``
    """
    ordered = sorted(positions)
    if not ordered:
        return gap
    if index < 0 or index >= len(ordered):
        return ordered[-1] + gap
    if index == 0:
        return ordered[0] / 2.0
    return get_between(ordered[index - 1], ordered[index])


def position_after(
    target: float,
    column_positions: Iterable[float],
    *,
    gap: float = DEFAULT_GAP,
) -> float:
    """Position immediately after *target*.

    Uses the nearest strictly greater neighbor; extends by *gap* when
    *target* is last in the column.
    """
    following = [p for p in column_positions if p > target]
    if not following:
        return target + gap
    return get_between(target, min(following))


def position_before(target: float, column_positions: Iterable[float]) -> float:
    """Position immediately before *target*.

    Uses the nearest strictly lesser neighbor; halves *target* when it is
    first in the column.
    """
    preceding = [p for p in column_positions if p < target]
    if not preceding:
        return target / 2.0
    return get_between(max(preceding), target)


def min_adjacent_gap(positions: Iterable[float]) -> float | None:
    """Smallest distance between neighbors, or None for fewer than two positions."""
    ordered = sorted(positions)
    if len(ordered) < 2:
        return None
    return min(b - a for a, b in zip(ordered, ordered[1:], strict=False))


def needs_rebalance(positions: Iterable[float], *, min_gap: float = MIN_GAP) -> bool:
    """True when any two neighbors are closer than *min_gap*."""
    smallest = min_adjacent_gap(positions)
    return smallest is not None and smallest < min_gap


def rebalanced_positions(count: int, *, gap: float = DEFAULT_GAP) -> list[float]:
    """Evenly spaced positions ``gap, 2*gap, ...`` for *count* tasks in order."""
    return [(index + 1) * gap for index in range(count)]
