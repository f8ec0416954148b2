"""Exception taxonomy for the consistency layer.

Every failure a service can surface is a :class:`KanbanError` carrying a
stable ``code``. Services convert them into failed :class:`ServiceResult`
objects; the CLI maps the code to an exit status. :class:`TransientError`
is the one internal member: the executor catches it to decide on fallback
and it never reaches a caller.
"""

from __future__ import annotations

from typing import Any


class KanbanError(Exception):
    """Base class for errors reported to callers."""

    code = "ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class TaskNotFoundError(KanbanError):
    code = "NOT_FOUND"

    def __init__(self, reference: str, message: str | None = None) -> None:
        super().__init__(message or f"task not found: {reference}", detail={"reference": reference})
        self.reference = reference


class BoardNotFoundError(KanbanError):
    code = "NOT_FOUND"

    def __init__(self, reference: str) -> None:
        super().__init__(f"board not found: {reference}", detail={"reference": reference})
        self.reference = reference


class AmbiguousReferenceError(KanbanError):
    """A reference matched more than one task or board.

    ``candidates`` holds ``(short_id, title)`` pairs for display.
    """

    code = "AMBIGUOUS"

    def __init__(self, reference: str, candidates: list[tuple[str, str]]) -> None:
        super().__init__(
            f"ambiguous reference '{reference}' matches {len(candidates)} items",
            detail={
                "reference": reference,
                "candidates": [{"id": cid, "title": title} for cid, title in candidates],
            },
        )
        self.reference = reference
        self.candidates = candidates


class ValidationRejectedError(KanbanError):
    """The mutation is invalid: bad input, a blocking rule, or a 4xx from the server."""

    code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(detail or {})
        if status_code is not None:
            merged["status_code"] = status_code
        super().__init__(message, detail=merged)
        self.status_code = status_code


class TransientError(KanbanError):
    """The server path failed in a way worth retrying on direct storage."""

    code = "TRANSIENT"


class StorageUnavailableError(KanbanError):
    """Direct storage could not be written."""

    code = "STORAGE_UNAVAILABLE"
