"""Span processor that logs spans when they end."""

from __future__ import annotations

import logging
from typing import Optional

from tracehop import runtime_config
from tracehop.tracer.provider import SpanProcessor


class LoggingSpanProcessor(SpanProcessor):
    """Logs span summary on end using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("tracehop.traces")

    def on_end(self, span) -> None:
        status = span.canonical_status
        code = status.canonical_code.name if status else span.status.name
        self.logger.info(
            "[trace] service=%s name=%s kind=%s trace_id=%s span_id=%s parent_id=%s status=%s sampled=%s attrs=%s",
            runtime_config.get_service_name(),
            span.name,
            span.kind.name,
            span.context.trace_id,
            span.context.span_id,
            span.parent_span_id,
            code,
            span.is_sampled,
            span.attributes,
        )
