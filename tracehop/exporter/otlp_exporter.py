"""OTLP exporter using OpenTelemetry OTLP HTTP exporter."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as OTelOTLPSpanExporter
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

logger = logging.getLogger(__name__)


class OTLPExporter(SpanExporter):
    """
    Sends ended spans to a trace collector over OTLP/HTTP.

    Thin wrapper adding bearer-token auth on top of OpenTelemetry's exporter;
    export failures are logged and reported as FAILURE, never raised.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        headers: Optional[dict] = None,
    ) -> None:
        """
        Initialize OTLP exporter.

        Args:
            endpoint: OTLP endpoint URL (defaults to OTel default)
            api_key: Optional API key for authentication
            timeout: Request timeout in seconds
            headers: Optional additional headers
        """
        export_headers = dict(headers) if headers else {}
        if api_key:
            export_headers["Authorization"] = f"Bearer {api_key}"

        self._otel_exporter = OTelOTLPSpanExporter(
            endpoint=endpoint,
            timeout=timeout,
            headers=export_headers if export_headers else None,
        )

        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if not spans:
            return SpanExportResult.SUCCESS
        try:
            return self._otel_exporter.export(spans)
        except Exception:
            logger.exception("Failed to export %d span(s) to %s", len(spans), self.endpoint)
            return SpanExportResult.FAILURE

    def shutdown(self) -> None:
        """Shutdown the exporter."""
        self._otel_exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Force flush any pending spans."""
        return self._otel_exporter.force_flush(timeout_millis=timeout_millis)
