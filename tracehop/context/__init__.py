"""Context utilities for tracehop."""

from tracehop.context.context import SpanScope, get_current_span, pop_span, push_span, use_span
from tracehop.context.propagators import (
    TraceContextFormat,
    default_getter,
    default_setter,
    extract,
    extract_trace_context,
    format_traceparent,
    format_tracestate,
    get_trace_context_format,
    inject,
    inject_headers,
    inject_trace_context,
    parse_traceparent,
    parse_tracestate,
)

__all__ = [
    "SpanScope",
    "get_current_span",
    "push_span",
    "pop_span",
    "use_span",
    "TraceContextFormat",
    "get_trace_context_format",
    "default_getter",
    "default_setter",
    "inject",
    "extract",
    "inject_headers",
    "inject_trace_context",
    "extract_trace_context",
    "format_traceparent",
    "parse_traceparent",
    "format_tracestate",
    "parse_tracestate",
]
