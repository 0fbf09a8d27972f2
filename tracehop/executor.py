"""Executor that carries the submitter's current span into the worker.

Pool threads do not inherit the submitting thread's context, so a span that is
current at `submit()` time would otherwise be lost and any span started by the
task would begin a brand new trace. `TraceContextExecutor` captures the current
span when the task is submitted and binds it around the task on the worker.
"""

from __future__ import annotations

import functools
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from tracehop import runtime_config
from tracehop.context.context import get_current_span, use_span
from tracehop.tracer.span import Span

T = TypeVar("T")

_default_executor: Optional["TraceContextExecutor"] = None
_executor_lock = threading.Lock()


class SpanPropagatingCallable:
    """Runs `fn` with `span` bound as current, then restores the worker's prior binding."""

    def __init__(self, fn: Callable[..., T], span: Span) -> None:
        functools.update_wrapper(self, fn)
        self._fn = fn
        self.span = span

    def __call__(self, *args: Any, **kwargs: Any) -> T:
        with use_span(self.span):
            return self._fn(*args, **kwargs)


def wrap_with_span(fn: Callable[..., T], span: Optional[Span] = None) -> SpanPropagatingCallable:
    """Wrap `fn` so it runs under `span`, defaulting to the span current right now."""
    return SpanPropagatingCallable(fn, span if span is not None else get_current_span())


class TraceContextExecutor(Executor):
    """
    Executor decorator propagating the current span to submitted tasks.

    Delegates scheduling to `delegate` (a ThreadPoolExecutor owned by this
    instance when none is given). Results and exceptions reach the returned
    future unchanged.
    """

    def __init__(
        self,
        delegate: Optional[Executor] = None,
        max_workers: Optional[int] = None,
        thread_name_prefix: str = "tracehop-worker",
    ) -> None:
        self._owns_delegate = delegate is None
        if delegate is None:
            delegate = ThreadPoolExecutor(
                max_workers=max_workers or runtime_config.get_max_workers(),
                thread_name_prefix=thread_name_prefix,
            )
        self._delegate = delegate

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> "Future[T]":
        # Capture happens here, on the submitting thread, before the pool sees the task.
        task = wrap_with_span(fn, get_current_span())
        return self._delegate.submit(task, *args, **kwargs)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        if self._owns_delegate:
            self._delegate.shutdown(wait=wait, cancel_futures=cancel_futures)


def get_default_executor() -> TraceContextExecutor:
    """Get or create the process-wide propagating executor."""
    global _default_executor
    if _default_executor is None:
        with _executor_lock:
            if _default_executor is None:
                _default_executor = TraceContextExecutor()
    return _default_executor


def shutdown_default_executor(wait: bool = True) -> None:
    global _default_executor
    with _executor_lock:
        executor, _default_executor = _default_executor, None
    if executor is not None:
        executor.shutdown(wait=wait)
