"""Span timings for ``--verbose`` runs.

``@traced`` opens a root span around a service method and copies the
finished tree into ``ServiceResult.meta["telemetry"]``. ``trace_span``
opens a child span inside it. With telemetry off, both cost one
ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from kanbanctl.services.result import ServiceResult

log = structlog.get_logger("kanbanctl.telemetry")

_enabled: ContextVar[bool] = ContextVar("kanbanctl_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("kanbanctl_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    """A named timing with its annotations and nested spans."""

    name: str
    annotations: dict[str, Any] = field(default_factory=dict)
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    ended: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.ended is None:
            return 0.0
        return (self.ended - self.started) * 1000

    def end(self) -> None:
        self.ended = time.perf_counter()

    def annotate(self, **values: Any) -> None:
        self.annotations.update(values)

    def to_dict(self) -> dict[str, Any]:
        tree: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            tree["annotations"] = dict(self.annotations)
        if self.children:
            tree["children"] = [child.to_dict() for child in self.children]
        return tree


def set_telemetry(enabled: bool) -> None:
    """Switch span collection on or off for the current context."""
    _enabled.set(enabled)


def get_current_span() -> Span | None:
    """The innermost open span; None when telemetry is off."""
    return _active.get() if _enabled.get() else None


@contextmanager
def _entered(span: Span) -> Iterator[Span]:
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Iterator[Span | None]:
    """Time a block as a child of the current span.

    Yields None outside a traced call or with telemetry off.
    """
    parent = get_current_span()
    if parent is None:
        yield None
        return
    child = Span(name, annotations=dict(annotations))
    parent.children.append(child)
    with _entered(child):
        yield child


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a root span for a service method."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(func.__qualname__)
        ok = False
        try:
            with _entered(root):
                result = func(*args, **kwargs)
            ok = True
        finally:
            log.debug(
                "span.complete",
                span_name=root.name,
                duration_ms=round(root.duration_ms, 2),
                ok=ok,
                children=len(root.children),
            )

        if isinstance(result, ServiceResult):
            return result.with_meta(telemetry=root.to_dict())  # type: ignore[return-value]
        return result

    return wrapper
