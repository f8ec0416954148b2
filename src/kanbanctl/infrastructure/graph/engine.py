"""BlockingGraph: the blocked_by relation loaded into NetworkX.

The integrity check asks whole-graph questions (all cycles, all dangling
edges), so it loads every task once per run; ``show`` reuses it for the
transitive blockers of one task. The write-path guard never
builds this graph; it follows blocked_by edges in storage one task at a
time.

An edge ``a -> b`` means task ``a`` is blocked by task ``b``.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import networkx as nx
from sqlalchemy import select

from kanbanctl.infrastructure.database.schema import tasks

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class BlockingGraph:
    """Loaded on first use; :meth:`invalidate` drops it after writes."""

    def __init__(self, db: Engine) -> None:
        self._db = db

    @cached_property
    def _loaded(self) -> tuple[nx.DiGraph, list[tuple[str, str]]]:
        with self._db.connect() as conn:
            rows = conn.execute(select(tasks.c.id, tasks.c.title, tasks.c.blocked_by)).all()

        graph = nx.DiGraph()
        graph.add_nodes_from((row.id, {"title": row.title}) for row in rows)
        dangling: list[tuple[str, str]] = []
        for row in rows:
            for blocker in row.blocked_by or []:
                if blocker in graph:
                    graph.add_edge(row.id, blocker)
                else:
                    dangling.append((row.id, blocker))
        return graph, dangling

    @property
    def graph(self) -> nx.DiGraph:
        """One node per task, one edge per blocker that still exists."""
        return self._loaded[0]

    def invalidate(self) -> None:
        self.__dict__.pop("_loaded", None)

    def cycles(self) -> list[list[str]]:
        """Every elementary cycle as a list of task ids."""
        return [list(cycle) for cycle in nx.simple_cycles(self.graph)]

    def dangling_edges(self) -> list[tuple[str, str]]:
        """``(task_id, blocker_id)`` for each blocker that was deleted."""
        return list(self._loaded[1])

    def blockers_of(self, task_id: str) -> set[str]:
        """Everything *task_id* waits on, directly or through other tasks."""
        if task_id not in self.graph:
            return set()
        return set(nx.descendants(self.graph, task_id))
