"""Timing spans for service calls, switched on by ``--verbose``.

``@traced`` opens a root span around a service method and attaches the
finished tree to ``ServiceResult.meta["telemetry"]``. Inside it,
``trace_span`` opens children that can carry annotations such as traversal
counters. While telemetry is off both cost one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from cmdbgraph.services.result import ServiceResult

_log = structlog.get_logger("cmdbgraph.telemetry")

_collecting: ContextVar[bool] = ContextVar("_collecting", default=False)
_active_span: ContextVar[Span | None] = ContextVar("_active_span", default=None)


@dataclass
class Span:
    name: str
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    ended: float | None = None

    @property
    def duration_ms(self) -> float:
        """Elapsed milliseconds, 0.0 until :meth:`end` is called."""
        if self.ended is None:
            return 0.0
        return (self.ended - self.started) * 1000

    def end(self) -> None:
        self.ended = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _activated(span: Span) -> Iterator[Span]:
    """Make *span* current for the block and close it on the way out."""
    token = _active_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _active_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Open a child of the current span.

    Yields None when telemetry is off or when no ``@traced`` call is active.
    """
    parent = _active_span.get() if _collecting.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name)
    parent.children.append(child)
    with _activated(child):
        yield child


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method; a returned ``ServiceResult`` gets the span tree in meta."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _collecting.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        ok = False
        try:
            with _activated(span):
                result = func(*args, **kwargs)
            if isinstance(result, ServiceResult):
                ok = result.ok
                meta = {**(result.meta or {}), "telemetry": span.to_dict()}
                result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
            else:
                ok = True
            return result
        finally:
            _log.debug(
                "span.complete",
                span_name=span.name,
                duration_ms=round(span.duration_ms, 2),
                ok=ok,
                children=len(span.children),
            )

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on for the current context."""
    _collecting.set(True)


def disable_telemetry() -> None:
    _collecting.set(False)
