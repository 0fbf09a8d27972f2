"""Tracer components for tracehop."""

from tracehop.tracer.provider import SpanProcessor, TracerProvider
from tracehop.tracer.span import NOOP_SPAN, NoopSpan, Span
from tracehop.tracer.span_context import INVALID_SPAN_CONTEXT, SpanContext
from tracehop.tracer.status import CanonicalCode, SpanStatus, Status
from tracehop.tracer.tracer import Tracer

__all__ = [
    "Span",
    "NoopSpan",
    "NOOP_SPAN",
    "SpanStatus",
    "CanonicalCode",
    "Status",
    "SpanContext",
    "INVALID_SPAN_CONTEXT",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
]
