"""MutationExecutor: persist one task mutation through the server or directly.

The board server broadcasts changes to connected viewers, so a write goes
through its records API whenever the server answers its health probe.
Otherwise, or with ``--direct``, the task is written straight to SQLite.

Once the API path has been chosen:

- a 4xx response means the server rejected the record; that is reported
  as :class:`ValidationRejectedError` and nothing is written;
- anything else going wrong (timeout, refused connection, 5xx, unreadable
  body) is logged as a warning and the write is repeated once on direct
  storage. The API path is never retried. A fallback create finds the
  row already present when the server committed it before failing, and
  counts that as written.

Ids, seqs, positions, and history are all decided before either path is
attempted, so both paths persist the same record.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kanbanctl.infrastructure.api_client import ApiError, ApiUnavailableError
from kanbanctl.services.errors import (
    StorageUnavailableError,
    TaskNotFoundError,
    TransientError,
    ValidationRejectedError,
)
from kanbanctl.services.telemetry import trace_span

if TYPE_CHECKING:
    from kanbanctl.domain.records import TaskRecord
    from kanbanctl.infrastructure.api_client import ApiClient
    from kanbanctl.infrastructure.repositories import TaskRepository

log = structlog.get_logger(__name__)


class PersistPath(StrEnum):
    API = "api"
    DIRECT = "direct"
    DIRECT_FALLBACK = "direct-fallback"


@dataclass(frozen=True)
class ExecutionReport:
    """Which path persisted the mutation, and any fallback warnings."""

    path: PersistPath
    warnings: tuple[str, ...] = ()


def task_payload(task: TaskRecord) -> dict[str, Any]:
    """The records-API body for *task*. Unset optional fields are omitted."""
    payload: dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "type": str(task.type),
        "priority": str(task.priority),
        "column": str(task.column),
        "position": task.position,
        "labels": list(task.labels),
        "blocked_by": list(task.blocked_by),
        "created_by": str(task.created_by),
        "created_by_agent": task.created_by_agent,
        "history": task.history.to_list(),
    }
    if task.board_id:
        payload["board"] = task.board_id
    if task.seq is not None:
        payload["seq"] = task.seq
    if task.parent:
        payload["parent"] = task.parent
    return payload


class MutationExecutor:
    """Routes create, update, and delete to the server or to SQLite.

    Args:
        tasks: Repository used for direct writes.
        client_factory: Builds a fresh :class:`ApiClient` per mutation.
        direct: Skip the health probe and always write directly.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        client_factory: Callable[[], ApiClient],
        *,
        direct: bool = False,
    ) -> None:
        self._tasks = tasks
        self._client_factory = client_factory
        self._direct = direct

    def create(self, task: TaskRecord) -> ExecutionReport:
        def after_api_failure() -> None:
            # The server may have committed the row before the request failed.
            if self._tasks.exists(task.id):
                log.info("persist.fallback_skipped", op="create", task_id=task.id)
                return
            self._tasks.insert(task)

        return self._execute(
            "create",
            task.id,
            lambda client: client.create_task(task_payload(task)),
            lambda: self._tasks.insert(task),
            fallback=after_api_failure,
        )

    def update(self, task: TaskRecord) -> ExecutionReport:
        def direct() -> None:
            if not self._tasks.update(task):
                raise TaskNotFoundError(task.id)

        return self._execute(
            "update",
            task.id,
            lambda client: client.update_task(task.id, task_payload(task)),
            direct,
        )

    def delete(self, task: TaskRecord) -> ExecutionReport:
        def direct() -> None:
            if not self._tasks.delete(task.id):
                raise TaskNotFoundError(task.id)

        return self._execute(
            "delete",
            task.id,
            lambda client: client.delete_task(task.id),
            direct,
        )

    # ------------------------------------------------------------------

    def _execute(
        self,
        op: str,
        task_id: str,
        via_api: Callable[[ApiClient], object],
        via_storage: Callable[[], None],
        *,
        fallback: Callable[[], None] | None = None,
    ) -> ExecutionReport:
        with trace_span(f"persist.{op}", task=task_id) as span:
            report = self._route(op, task_id, via_api, via_storage, fallback or via_storage)
            if span is not None:
                span.annotate(path=str(report.path))
        return report

    def _route(
        self,
        op: str,
        task_id: str,
        via_api: Callable[[ApiClient], object],
        via_storage: Callable[[], None],
        fallback: Callable[[], None],
    ) -> ExecutionReport:
        if self._direct:
            log.debug("persist.direct", op=op, task_id=task_id, reason="direct mode")
            self._write_direct(op, via_storage)
            return ExecutionReport(PersistPath.DIRECT)

        with self._client_factory() as client:
            if not client.is_server_running():
                log.debug("persist.direct", op=op, task_id=task_id, reason="server not running")
                self._write_direct(op, via_storage)
                return ExecutionReport(PersistPath.DIRECT)

            log.debug("persist.api", op=op, task_id=task_id, server=client.base_url)
            try:
                self._call_api(via_api, client)
            except TransientError as exc:
                warning = f"API request failed, falling back to direct database: {exc.message}"
                log.warning("persist.fallback", op=op, task_id=task_id, error=exc.message)
                self._write_direct(op, fallback)
                return ExecutionReport(PersistPath.DIRECT_FALLBACK, (warning,))

        return ExecutionReport(PersistPath.API)

    @staticmethod
    def _call_api(via_api: Callable[[ApiClient], object], client: ApiClient) -> None:
        try:
            via_api(client)
        except ApiError as exc:
            if exc.is_validation_error:
                msg = f"validation error: {exc.message}"
                raise ValidationRejectedError(
                    msg, status_code=exc.status_code, detail={"data": exc.data}
                ) from exc
            raise TransientError(str(exc)) from exc
        except ApiUnavailableError as exc:
            raise TransientError(str(exc)) from exc

    @staticmethod
    def _write_direct(op: str, via_storage: Callable[[], None]) -> None:
        try:
            via_storage()
        except IntegrityError as exc:
            msg = f"{op} rejected by storage: {exc.orig}"
            raise ValidationRejectedError(msg) from exc
        except SQLAlchemyError as exc:
            msg = f"failed to {op} task: {exc}"
            raise StorageUnavailableError(msg) from exc
