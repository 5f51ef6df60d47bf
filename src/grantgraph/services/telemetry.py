"""Request telemetry — span trees for ``grantctl -v``.

Disabled by default; every entry point checks one ContextVar and gets
out of the way. With ``--verbose`` each ``@traced`` service operation
opens a span, ``trace_span`` blocks nest under it, and the finished tree
lands in ``ServiceResult.meta["telemetry"]`` next to the status code.

Spans know about the permission engine only through annotations: the
acting user, the resulting status, and whatever counts a stage chooses
to record (``visible=3`` after a listing filter, for example).
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

from grantgraph.domain.actors import Actor
from grantgraph.services.result import ServiceResult

log = structlog.get_logger("grantgraph.telemetry")

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """One timed stage of an operation, with child stages and annotations."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a stage inside the current ``@traced`` operation.

    Yields None when telemetry is off or no operation span is open, so
    callers guard annotations with ``if span:``.
    """
    parent = _current_span.get() if _verbose_enabled.get() else None
    if parent is None:
        yield None
        return

    span = parent.child(name)
    span.annotations.update(annotations)
    with _activate(span):
        yield span


def _acting_user(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str | None:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Actor):
            return value.node_id
    return None


def traced[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Wrap a service operation in a span.

    The outermost traced call owns the tree and merges it into the
    returned ServiceResult's meta; nested traced calls become children.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        parent = _current_span.get()
        span = parent.child(func.__qualname__) if parent else Span(name=func.__qualname__)
        actor_id = _acting_user(args, kwargs)
        if actor_id is not None:
            span.annotate("actor", actor_id)

        try:
            with _activate(span):
                result = func(*args, **kwargs)
        except Exception:
            log.debug("span.failed", span_name=span.name, duration_ms=round(span.duration_ms, 2))
            raise

        if not isinstance(result, ServiceResult):
            return result

        span.annotate("status", result.status)
        log.debug(
            "span.complete",
            span_name=span.name,
            status=result.status,
            duration_ms=round(span.duration_ms, 2),
            stages=len(span.children),
        )
        if not span.is_root:
            return result
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on (``AppContext`` does this for ``-v``)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, for ad-hoc annotation. None when disabled."""
    if not _verbose_enabled.get():
        return None
    return _current_span.get()
