"""TracerProvider using OpenTelemetry SDK."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from opentelemetry.sdk.resources import Resource as OTelResource
from opentelemetry.sdk.trace import SpanProcessor as OTelSpanProcessor
from opentelemetry.sdk.trace import TracerProvider as OTelTracerProvider

logger = logging.getLogger(__name__)


class SpanProcessor:
    """
    Base span processor interface for tracehop enrichment processors.

    Enrichment processors run BEFORE the OpenTelemetry span ends (span is mutable).
    Export processors use OTel's SpanProcessor interface (run AFTER it ends).
    """

    def on_end(self, span) -> None:
        """
        Called when a span ends.

        Note: This is called BEFORE the OTel span ends, so the span is still mutable.
        You can call span.set_attribute() here.

        Args:
            span: tracehop Span instance (mutable)
        """
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass


class TracerProvider:
    """
    TracerProvider using OpenTelemetry SDK.

    Separates enrichment processors (tracehop) from export processors (OTel).
    The sampler is installed parent-based: root spans consult it, child spans
    inherit the parent's decision.
    """

    def __init__(
        self,
        resource: Optional[Dict[str, str]] = None,
        sampler: Optional[Any] = None,
    ) -> None:
        """
        Initialize TracerProvider with OpenTelemetry.

        Args:
            resource: Resource attributes dictionary (converted to OTel Resource)
            sampler: Root sampler (tracehop Sampler); defaults to always sample
        """
        # Lazy import: the processors package imports this module.
        from tracehop.processors.sampler import AlwaysOnSampler, RootSamplerAdapter

        self._root_sampler = RootSamplerAdapter(sampler or AlwaysOnSampler())
        otel_resource = OTelResource.create(resource or {})
        self._otel_provider = OTelTracerProvider(
            resource=otel_resource,
            sampler=self._root_sampler.parent_based(),
        )

        self.resource = resource or {}

        # Separate enrichment vs export processors
        self._enrichment_processors: List[SpanProcessor] = []
        self._export_processors: List[OTelSpanProcessor] = []

        # Tracers cache
        self._tracers: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def sampler(self) -> Any:
        return self._root_sampler.delegate

    def get_tracer(self, name: str) -> "Tracer":
        """
        Get a tracer by name.

        Args:
            name: Instrumentation scope name

        Returns:
            tracehop Tracer instance (wraps OTel Tracer)
        """
        with self._lock:
            tracer = self._tracers.get(name)
            if tracer is None:
                from tracehop.tracer.tracer import Tracer
                tracer = Tracer(self, name)
                self._tracers[name] = tracer
            return tracer

    def add_span_processor(self, processor: Any) -> None:
        """
        Add a span processor.

        OTel-compatible processors go to the OTel provider (export side);
        anything else is a tracehop enrichment processor.
        """
        if isinstance(processor, OTelSpanProcessor):
            self._otel_provider.add_span_processor(processor)
            self._export_processors.append(processor)
        else:
            self._enrichment_processors.append(processor)

    def set_sampler(self, sampler: Any) -> None:
        """
        Replace the root sampler.

        Takes effect for root spans started afterwards; existing traces keep
        their decision through the parent-based wrapper.
        """
        self._root_sampler.delegate = sampler

    def get_sampler(self) -> Any:
        """Get the current root sampler."""
        return self._root_sampler.delegate

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush all processors."""
        self._otel_provider.force_flush(timeout_millis=int(timeout * 1000) if timeout else 30000)

        for processor in self._enrichment_processors:
            try:
                processor.force_flush(timeout=timeout)
            except Exception:
                logger.exception("Failed to flush span processor %r", processor)

    def shutdown(self) -> None:
        """Shutdown the provider and all processors."""
        self._otel_provider.shutdown()

        for processor in self._enrichment_processors:
            try:
                processor.shutdown()
            except Exception:
                logger.exception("Failed to shut down span processor %r", processor)
