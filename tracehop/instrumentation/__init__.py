"""Instrumentation helpers for outbound and inbound HTTP."""

from tracehop.instrumentation.http_client import (
    TracingHTTPAdapter,
    TracingInterceptor,
    get_span_name,
    traced_session,
)
from tracehop.instrumentation.http_server import extract_parent_context, start_server_span
from tracehop.instrumentation.http_status import CallOutcome, parse_response_status

__all__ = [
    "TracingInterceptor",
    "TracingHTTPAdapter",
    "traced_session",
    "get_span_name",
    "extract_parent_context",
    "start_server_span",
    "CallOutcome",
    "parse_response_status",
]
