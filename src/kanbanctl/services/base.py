"""BaseService: what every kanbanctl service starts from.

A service is built around one :class:`Workspace` and takes its
repositories, settings, and API client from there. Each service also
gets a :class:`ReferenceResolver`, since nearly every operation starts by
turning a user reference into a record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from kanbanctl.services.resolver import ReferenceResolver
from kanbanctl.services.result import ServiceResult

if TYPE_CHECKING:
    from kanbanctl.infrastructure.workspace import Workspace
    from kanbanctl.services.errors import KanbanError

logger = logging.getLogger(__name__)


class BaseService:
    """Shared construction and failure handling for services.

    Operations catch :class:`KanbanError` at their top level and return
    ``self._fail(op, exc)``::

        try:
            board = self._resolver.resolve_board(ref)
        except KanbanError as exc:
            return self._fail("board_show", exc)
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace
        self._resolver = ReferenceResolver(workspace.tasks, workspace.boards)

    @staticmethod
    def _fail(op: str, exc: KanbanError, *, warnings: Iterable[str] = ()) -> ServiceResult:
        logger.debug("%s failed with %s: %s", op, exc.code, exc.message)
        return ServiceResult.failure(op, exc, warnings=warnings)
