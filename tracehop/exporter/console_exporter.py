"""Console exporter for developer visibility."""

from __future__ import annotations

import sys
from typing import Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from tracehop.utils.helpers import format_span_id, format_trace_id


class ConsoleExporter(SpanExporter):
    """Simple exporter that prints one line per span to stdout (or provided stream)."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        for span in spans:
            context = span.get_span_context()
            parent = format_span_id(span.parent.span_id) if span.parent else None
            duration_ns = None
            if span.end_time is not None and span.start_time is not None:
                duration_ns = span.end_time - span.start_time
            line = (
                f"[span] name={span.name} kind={span.kind.name} "
                f"trace_id={format_trace_id(context.trace_id)} "
                f"span_id={format_span_id(context.span_id)} parent_id={parent} "
                f"status={span.status.status_code.name} duration_ns={duration_ns}"
            )
            if span.status.description:
                line += f" status_description={span.status.description!r}"
            if span.attributes:
                line += f" attrs={dict(span.attributes)}"
            print(line, file=self.stream)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        return None
