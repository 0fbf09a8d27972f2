"""W3C trace context propagation using OpenTelemetry's standard propagator.

A span context travels in the `traceparent` header
(`<version>-<trace-id>-<span-id>-<flags>`) plus an optional `tracestate`
header for vendor key/values. Unsampled contexts are still written, with flags
`00`, so downstream services do not start a sampled trace of their own.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from opentelemetry.propagators.textmap import (
    CarrierT,
    DefaultGetter,
    DefaultSetter,
    Getter,
    Setter,
)
from opentelemetry.trace import NonRecordingSpan, get_current_span as otel_get_current_span
from opentelemetry.trace import set_span_in_context
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from tracehop.context.context import get_current_span
from tracehop.tracer.span_context import SpanContext, from_otel_context, to_otel_context

logger = logging.getLogger(__name__)

TRACEPARENT_HEADER = "traceparent"
TRACESTATE_HEADER = "tracestate"

default_setter: Setter = DefaultSetter()
default_getter: Getter = DefaultGetter()


class TraceContextFormat:
    """Textual codec moving a SpanContext in and out of a key/value carrier."""

    def __init__(self) -> None:
        self._propagator = TraceContextTextMapPropagator()

    @property
    def fields(self) -> set:
        return self._propagator.fields

    def inject(
        self,
        span_context: SpanContext,
        carrier: CarrierT,
        setter: Setter = default_setter,
    ) -> None:
        """Write `span_context` into `carrier`; invalid contexts write nothing."""
        if not span_context.is_valid():
            return
        span = NonRecordingSpan(to_otel_context(span_context))
        self._propagator.inject(carrier, context=set_span_in_context(span), setter=setter)

    def extract(
        self,
        carrier: CarrierT,
        getter: Getter = default_getter,
    ) -> Optional[SpanContext]:
        """
        Read a SpanContext from `carrier`.

        Missing or malformed headers yield None (never raise); the caller should
        start a new root trace in that case.
        """
        try:
            ctx = self._propagator.extract(carrier, getter=getter)
        except Exception:
            logger.debug("Ignoring unreadable trace context carrier", exc_info=True)
            return None
        return from_otel_context(otel_get_current_span(ctx).get_span_context())


_format = TraceContextFormat()


def get_trace_context_format() -> TraceContextFormat:
    return _format


def inject(span_context: SpanContext, carrier: CarrierT, setter: Setter = default_setter) -> None:
    _format.inject(span_context, carrier, setter)


def extract(carrier: CarrierT, getter: Getter = default_getter) -> Optional[SpanContext]:
    return _format.extract(carrier, getter)


def format_traceparent(context: SpanContext) -> str:
    """Format traceparent header value; empty string for invalid contexts."""
    carrier: Dict[str, str] = {}
    _format.inject(context, carrier)
    return carrier.get(TRACEPARENT_HEADER, "")


def parse_traceparent(header_value: str) -> Optional[SpanContext]:
    """Parse a traceparent header into a SpanContext."""
    if not header_value:
        return None
    return _format.extract({TRACEPARENT_HEADER: header_value})


def format_tracestate(state: Tuple[Tuple[str, str], ...]) -> str:
    """Format tracestate pairs as `key1=value1,key2=value2`."""
    return ",".join(f"{key}={value}" for key, value in state)


def parse_tracestate(header_value: str) -> Tuple[Tuple[str, str], ...]:
    """
    Parse a tracestate header into ordered pairs.

    Entries without `=` or with an empty key/value are skipped.
    """
    if not header_value:
        return ()
    result = []
    for item in header_value.split(","):
        key, sep, value = item.strip().partition("=")
        key, value = key.strip(), value.strip()
        if sep and key and value:
            result.append((key, value))
    return tuple(result)


def inject_trace_context(headers: Dict[str, str], context: SpanContext) -> Dict[str, str]:
    """Inject traceparent/tracestate for `context` into a headers mapping."""
    _format.inject(context, headers)
    return headers


def extract_trace_context(headers: Dict[str, str]) -> Optional[SpanContext]:
    """Extract traceparent and tracestate from a headers mapping (case-insensitive)."""
    lowered = {str(key).lower(): value for key, value in headers.items()}
    return _format.extract(lowered)


def inject_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """
    Inject the current span's context into the provided headers mapping.

    No-op when nothing is current. Returns the same headers mapping.
    """
    _format.inject(get_current_span().context, headers)
    return headers
