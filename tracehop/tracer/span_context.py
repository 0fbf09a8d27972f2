"""Immutable trace metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags, TraceState

from tracehop.utils.helpers import (
    format_span_id,
    format_trace_id,
    is_hex_id,
    is_valid_trace_state,
    parse_span_id,
    parse_trace_id,
)

SAMPLED_FLAG = 0x01


@dataclass(frozen=True)
class SpanContext:
    trace_id: str
    span_id: str
    trace_flags: int = SAMPLED_FLAG  # bit 0 = sampled
    trace_state: Tuple[Tuple[str, str], ...] = ()

    def is_valid(self) -> bool:
        """Ids are non-zero lowercase hex and every trace_state pair is a legal W3C member."""
        return (
            is_hex_id(self.trace_id, 32)
            and is_hex_id(self.span_id, 16)
            and is_valid_trace_state(self.trace_state)
        )

    @property
    def is_sampled(self) -> bool:
        return bool(self.trace_flags & SAMPLED_FLAG)


INVALID_SPAN_CONTEXT = SpanContext(
    trace_id="0" * 32,
    span_id="0" * 16,
    trace_flags=0,
)


def to_otel_context(context: SpanContext, is_remote: bool = False) -> OTelSpanContext:
    """Convert a tracehop SpanContext to an OpenTelemetry SpanContext."""
    return OTelSpanContext(
        trace_id=parse_trace_id(context.trace_id),
        span_id=parse_span_id(context.span_id),
        is_remote=is_remote,
        trace_flags=TraceFlags(context.trace_flags),
        trace_state=TraceState(list(context.trace_state)),
    )


def from_otel_context(otel_context: OTelSpanContext) -> Optional[SpanContext]:
    """Convert an OpenTelemetry SpanContext; invalid contexts yield None."""
    if otel_context is None or not otel_context.is_valid:
        return None
    trace_state = tuple(otel_context.trace_state.items()) if otel_context.trace_state else ()
    return SpanContext(
        trace_id=format_trace_id(otel_context.trace_id),
        span_id=format_span_id(otel_context.span_id),
        trace_flags=int(otel_context.trace_flags),
        trace_state=trace_state,
    )
