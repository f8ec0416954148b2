"""Workspace: repository access with transaction coordination.

The Workspace is the single dependency injected into every service. It
owns the database engine, the repositories bound to it, the blocking
graph, and the factory for the board server client.

Repositories on the workspace itself are bound to the engine, so each
call is its own short transaction. :meth:`Workspace.transaction` yields a
:class:`WorkspaceTransaction` whose repositories share one connection,
for operations that must commit or roll back together.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kanbanctl.infrastructure.api_client import ApiClient
from kanbanctl.infrastructure.database.engine import init_database
from kanbanctl.infrastructure.graph.engine import BlockingGraph
from kanbanctl.infrastructure.repositories import (
    BoardRepository,
    CommentRepository,
    TaskRepository,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    import httpx
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from kanbanctl.config.settings import KanbanSettings

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceTransaction:
    """Repositories sharing one connection inside an open transaction."""

    conn: Connection
    tasks: TaskRepository = field(init=False)
    boards: BoardRepository = field(init=False)
    comments: CommentRepository = field(init=False)

    def __post_init__(self) -> None:
        self.tasks = TaskRepository(self.conn)
        self.boards = BoardRepository(self.conn)
        self.comments = CommentRepository(self.conn)


class Workspace:
    """Database, repositories, graph, and server client for one workspace.

    Constructed once at CLI startup from :class:`KanbanSettings` and stored
    in ``click.Context.obj``. Services receive the Workspace via their
    :class:`BaseService` constructor.
    """

    def __init__(
        self,
        settings: KanbanSettings,
        *,
        engine: Engine | None = None,
        api_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._api_transport = api_transport
        self._engine: Engine = engine if engine is not None else init_database(self.root)
        self._graph = BlockingGraph(self._engine)
        self.tasks = TaskRepository(self._engine)
        self.boards = BoardRepository(self._engine)
        self.comments = CommentRepository(self._engine)

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.root

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def graph(self) -> BlockingGraph:
        """The blocking graph (lazy-built from DB)."""
        return self._graph

    @property
    def settings(self) -> KanbanSettings:
        return self._settings

    def api_client(self) -> ApiClient:
        """A fresh client for the configured board server."""
        server = self._settings.server
        return ApiClient(
            server.url,
            health_timeout=server.health_timeout,
            request_timeout=server.request_timeout,
            transport=self._api_transport,
        )

    @contextmanager
    def transaction(self) -> Iterator[WorkspaceTransaction]:
        """One database transaction shared by every repository it yields.

        Commits when the block exits normally; rolls back and re-raises on
        any exception. The blocking graph is invalidated either way.

        Usage::

            with workspace.transaction() as txn:
                txn.tasks.update(task)
                txn.comments.insert(comment)
        """
        with self._engine.begin() as conn:
            try:
                yield WorkspaceTransaction(conn)
            finally:
                self._graph.invalidate()

    def close(self) -> None:
        """Dispose the engine's connection pool."""
        self._engine.dispose()
