"""Context helpers for managing the active span stack - using OpenTelemetry context storage.

The current span lives in the OpenTelemetry runtime context, which is built on
contextvars: every thread and every asyncio task sees its own binding. The
tracehop wrapper is stored next to the raw OpenTelemetry span so that
`get_current_span()` returns the very object that was bound, and the ids of the
live scopes are stored with it so guards can tell when they are released out
of order or after an enclosing scope already unwound them.
"""

from __future__ import annotations

import itertools
import logging
from typing import Optional, Tuple, TYPE_CHECKING

from opentelemetry import context as context_api
from opentelemetry.trace import set_span_in_context

from tracehop.tracer.span import NOOP_SPAN

if TYPE_CHECKING:
    from tracehop.tracer.span import Span

logger = logging.getLogger(__name__)

_SPAN_KEY = context_api.create_key("tracehop-current-span")
_SCOPES_KEY = context_api.create_key("tracehop-live-scopes")

_scope_ids = itertools.count(1)


def get_current_span() -> "Span":
    """
    Return the span bound to the calling thread or task.

    Never returns None: when nothing is bound the shared `NOOP_SPAN` comes back,
    so attribute and status calls on the result are always safe.
    """
    span = context_api.get_value(_SPAN_KEY)
    if span is None:
        return NOOP_SPAN
    return span


def _live_scopes() -> Tuple[int, ...]:
    """Ids of the scopes bound in the current context, outermost first."""
    return context_api.get_value(_SCOPES_KEY) or ()


class SpanScope:
    """
    Binds a span as current until released.

    The binding is made on construction; `close()` (or leaving the `with`
    block) restores whatever was current before. With `end_on_exit` the span
    is ended on release as well.

    Releasing scopes out of LIFO order is a usage error. It is logged and
    handled deterministically: releasing an outer scope unwinds every scope
    nested inside it, and a scope whose binding was already unwound is left
    alone.
    """

    def __init__(self, span: "Span", end_on_exit: bool = False) -> None:
        self.span = span
        self._end_on_exit = end_on_exit
        self._closed = False
        self._id = next(_scope_ids)

        ctx = set_span_in_context(span._otel_span)
        ctx = context_api.set_value(_SPAN_KEY, span, ctx)
        ctx = context_api.set_value(_SCOPES_KEY, _live_scopes() + (self._id,), ctx)
        self._token = context_api.attach(ctx)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self, error: Optional[BaseException] = None) -> None:
        """Release the binding, ending the span first when this scope owns it."""
        if self._closed:
            logger.warning("Scope for span '%s' released twice; ignoring", self.span.name)
            return
        self._closed = True
        try:
            if self._end_on_exit:
                if error is not None:
                    self.span.record_exception(error)
                self.span.end()
        finally:
            self._restore()

    def _restore(self) -> None:
        live = _live_scopes()
        if self._id not in live:
            logger.warning(
                "Scope for span '%s' was already unwound by an enclosing scope; ignoring",
                self.span.name,
            )
            return
        nested = len(live) - live.index(self._id) - 1
        if nested:
            logger.warning(
                "Scope for span '%s' released out of order; unwinding %d nested scope(s)",
                self.span.name,
                nested,
            )
        # Every live scope after this one was entered on top of it, so the
        # token's saved context is exactly the binding to return to.
        context_api.detach(self._token)

    def __enter__(self) -> "Span":
        return self.span

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close(exc)
        return False

    async def __aenter__(self) -> "Span":
        return self.span

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.close(exc)
        return False


def push_span(span: "Span") -> SpanScope:
    """
    Push a span onto the context and set it as current.

    Returns:
        Scope needed to restore the previous state
    """
    return SpanScope(span)


def pop_span(scope: SpanScope) -> None:
    """
    Restore the previous span binding using the provided scope.

    Args:
        scope: Scope returned by push_span()
    """
    scope.close()


def use_span(span: "Span") -> SpanScope:
    """Bind an existing span as current without ending it on release (context manager)."""
    return SpanScope(span)
