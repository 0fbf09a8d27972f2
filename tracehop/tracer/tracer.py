"""Tracer using OpenTelemetry SDK with tracehop's current-span binding."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, TYPE_CHECKING

from opentelemetry import context as context_api
from opentelemetry.trace import NonRecordingSpan, SpanKind, set_span_in_context
from opentelemetry.trace import Tracer as OTelTracer

from tracehop.context.context import SpanScope, get_current_span
from tracehop.tracer.span import Span
from tracehop.tracer.span_context import SpanContext, to_otel_context

if TYPE_CHECKING:
    from tracehop.tracer.provider import TracerProvider

logger = logging.getLogger(__name__)


class Tracer:
    """
    Creates spans and manages which one is current.

    Spans are created through the OpenTelemetry tracer of the owning provider
    (ids, sampling and export come from the SDK); the parent is resolved here so
    that the recorded parent is always the span that was current, or the
    explicit context passed in, at creation time.
    """

    def __init__(self, provider: "TracerProvider", instrumentation_scope: str):
        """
        Initialize tracer with OpenTelemetry Tracer.

        Args:
            provider: tracehop TracerProvider instance
            instrumentation_scope: Instrumentation scope name
        """
        self._provider = provider
        self.instrumentation_scope = instrumentation_scope
        self._otel_tracer: OTelTracer = provider._otel_provider.get_tracer(instrumentation_scope)

    def start_span(
        self,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        parent_context: Optional[SpanContext] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Span:
        """
        Start a new span. The span is started but not made current.

        Args:
            name: Span name
            kind: Span kind
            parent_context: Explicit parent (typically extracted from a carrier).
                When omitted the current span is the parent.
            attributes: Optional attributes dictionary

        Returns:
            tracehop Span instance (wraps OTel Span)
        """
        parent_span_id = None
        # An empty Context means "root"; OTel then consults the root sampler.
        otel_parent = context_api.Context()

        if parent_context is not None:
            if parent_context.is_valid():
                remote = NonRecordingSpan(to_otel_context(parent_context, is_remote=True))
                otel_parent = set_span_in_context(remote, otel_parent)
                parent_span_id = parent_context.span_id
        else:
            current = get_current_span()
            if current.context.is_valid():
                otel_parent = set_span_in_context(current._otel_span, otel_parent)
                parent_span_id = current.context.span_id

        start_time_ns = time.time_ns()
        otel_span = self._otel_tracer.start_span(
            name=name,
            context=otel_parent,
            kind=kind,
            start_time=start_time_ns,
        )

        span = Span(
            otel_span,
            self,
            name=name,
            kind=kind,
            parent_span_id=parent_span_id,
            start_time_ns=start_time_ns,
        )
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        return span

    def scoped_span(
        self,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        parent_context: Optional[SpanContext] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> SpanScope:
        """
        Start a span and make it current until the returned scope is released.

        Releasing the scope ends the span (status defaults to OK when the caller
        did not set one) and restores the previously current span. Use as a
        context manager: `with tracer.scoped_span("op") as span: ...`.
        """
        span = self.start_span(name, kind=kind, parent_context=parent_context, attributes=attributes)
        return SpanScope(span, end_on_exit=True)

    def with_span(self, span: Span) -> SpanScope:
        """Bind an existing span as current; releasing the scope does not end it."""
        return SpanScope(span)

    def current_span(self) -> Span:
        """Get the current span (NOOP_SPAN when none is bound)."""
        return get_current_span()

    def _run_enrichment_processors(self, span: Span) -> None:
        """
        Run enrichment processors before span ends.

        Called by Span.end() before the OTel span is ended.
        """
        for processor in self._provider._enrichment_processors:
            try:
                processor.on_end(span)
            except Exception:
                # Processors should not crash tracing
                logger.exception("Span processor %r failed", processor)
