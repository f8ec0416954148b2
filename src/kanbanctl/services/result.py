"""The value every service method returns.

A command never sees an exception from the service layer: failures come
back as ``ServiceResult(ok=False)`` whose ``error.code`` picks the exit
status and whose ``error.detail`` carries anything a renderer may show,
such as the candidates of an ambiguous reference.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from kanbanctl.services.errors import KanbanError


class ServiceError(BaseModel):
    """Code, message, and structured detail of a failed operation."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: KanbanError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))

    @property
    def candidates(self) -> list[dict[str, str]]:
        """``{"id", "title"}`` pairs of an ambiguous reference, else empty."""
        return list(self.detail.get("candidates") or [])


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: False when ``error`` is set.
        op: Operation name, e.g. ``"move"`` or ``"board_create"``.
        data: Payload; empty on failure.
        warnings: Problems that did not stop the operation.
        error: Set when the operation failed.
        meta: Persistence path and, under ``--verbose``, span timings.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: KanbanError, *, warnings: Iterable[str] = ()) -> ServiceResult:
        return cls(ok=False, op=op, warnings=list(warnings), error=ServiceError.from_exception(exc))

    def with_meta(self, **entries: Any) -> ServiceResult:
        """Copy of this result with *entries* merged into ``meta``."""
        return self.model_copy(update={"meta": {**(self.meta or {}), **entries}})
