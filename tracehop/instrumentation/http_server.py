"""HTTP server helpers for extracting context and creating server spans."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from opentelemetry.trace import SpanKind

from tracehop.context.context import SpanScope
from tracehop.context.propagators import extract_trace_context
from tracehop.tracer.span_context import INVALID_SPAN_CONTEXT, SpanContext
from tracehop.tracer.tracer import Tracer


def extract_parent_context(headers: Mapping[str, str]) -> Optional[SpanContext]:
    """Parse traceparent/tracestate from headers and return SpanContext if valid."""
    return extract_trace_context(dict(headers))


def start_server_span(
    tracer: Tracer,
    name: str,
    headers: Mapping[str, str],
    attributes: Optional[Dict[str, Any]] = None,
) -> SpanScope:
    """
    Start a SERVER span continuing the caller's trace from `headers`.

    Without a usable incoming context a new root trace is started, regardless
    of what is current on this thread. Returns the scope (use with `with`).
    """
    parent_ctx = extract_parent_context(headers) or INVALID_SPAN_CONTEXT
    return tracer.scoped_span(
        name,
        kind=SpanKind.SERVER,
        parent_context=parent_ctx,
        attributes=attributes,
    )
