"""Span implementation - minimal wrapper around OpenTelemetry Span."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from opentelemetry.trace import INVALID_SPAN, Span as OTelSpan, SpanKind

from tracehop import runtime_config
from tracehop.tracer.span_context import INVALID_SPAN_CONTEXT, SpanContext, from_otel_context
from tracehop.tracer.status import (
    STATUS_OK,
    CanonicalCode,
    SpanStatus,
    Status,
)
from tracehop.utils.helpers import truncate_attribute

if TYPE_CHECKING:
    from tracehop.context.context import SpanScope
    from tracehop.tracer.tracer import Tracer

logger = logging.getLogger(__name__)


class Span:
    """
    Minimal wrapper around OpenTelemetry Span.

    Keeps the canonical status, the ordered attributes and the parent id on the
    wrapper so they can be read back while the span is live; the OpenTelemetry
    span receives every mutation and is what the export pipeline sees.

    A span is ended exactly once. Ending it again, or mutating it after it
    ended, is logged as a warning and ignored.
    """

    def __init__(
        self,
        otel_span: OTelSpan,
        tracer: Optional["Tracer"],
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        parent_span_id: Optional[str] = None,
        start_time_ns: Optional[int] = None,
    ) -> None:
        """
        Initialize span wrapper.

        Args:
            otel_span: OpenTelemetry Span instance
            tracer: tracehop Tracer that created the span
            name: Span name
            kind: Span kind (CLIENT, SERVER, INTERNAL)
            parent_span_id: Parent span ID (hex string), None for root spans
            start_time_ns: Start timestamp, defaults to now
        """
        self._otel_span = otel_span
        self.tracer = tracer
        self.name = name
        self.kind = kind
        self.parent_span_id = parent_span_id
        self.context: SpanContext = (
            from_otel_context(otel_span.get_span_context()) or INVALID_SPAN_CONTEXT
        )

        self.start_time_ns = start_time_ns if start_time_ns is not None else time.time_ns()
        self.end_time_ns: Optional[int] = None

        self._status: Optional[Status] = None
        self._attributes: Dict[str, Any] = {}
        self._ended = False
        # Scopes opened by `with span:`, innermost last.
        self._scopes: List["SpanScope"] = []

    @property
    def attributes(self) -> Dict[str, Any]:
        """Attributes in insertion order (read-only view by convention)."""
        return self._attributes

    @property
    def status(self) -> SpanStatus:
        """Coarse status: UNSET until a status is set or the span ends."""
        if self._status is None:
            return SpanStatus.UNSET
        return self._status.span_status

    @property
    def canonical_status(self) -> Optional[Status]:
        return self._status

    @property
    def status_description(self) -> Optional[str]:
        return self._status.description if self._status else None

    @property
    def is_sampled(self) -> bool:
        return self.context.is_sampled

    @property
    def is_ended(self) -> bool:
        return self._ended

    @property
    def duration_ns(self) -> Optional[int]:
        """Get span duration in nanoseconds."""
        if self.end_time_ns is None:
            return None
        return self.end_time_ns - self.start_time_ns

    def _check_live(self, operation: str) -> bool:
        if self._ended:
            logger.warning("%s on ended span '%s' ignored", operation, self.name)
            return False
        return True

    def set_attribute(self, key: str, value: Any) -> None:
        """Set an attribute on the span."""
        if not self._check_live("set_attribute"):
            return
        value = truncate_attribute(value, runtime_config.get_attr_truncation_limit())
        self._attributes[key] = value
        self._otel_span.set_attribute(key, value)

    def record_exception(self, error: BaseException) -> None:
        """Record an exception event; marks the span UNKNOWN unless a status is already set."""
        if not self._check_live("record_exception"):
            return
        try:
            self._otel_span.record_exception(error)
        except Exception:
            logger.debug("Failed to record exception on span '%s'", self.name, exc_info=True)
        if self._status is None:
            self.set_status(Status(CanonicalCode.UNKNOWN, str(error) or type(error).__name__))

    def set_status(
        self,
        status: Union[Status, SpanStatus],
        description: Optional[str] = None,
    ) -> None:
        """Set the span status from a canonical Status or a coarse SpanStatus."""
        if not self._check_live("set_status"):
            return
        if isinstance(status, SpanStatus):
            if status is SpanStatus.UNSET:
                self._status = None
                return
            code = CanonicalCode.OK if status is SpanStatus.OK else CanonicalCode.UNKNOWN
            status = Status(code, description)
        elif description is not None:
            status = status.with_description(description)

        self._status = status
        self._otel_span.set_status(status.to_otel())

    def end(self) -> None:
        """
        End the span.

        Enrichment processors run BEFORE the OpenTelemetry span ends (span is
        still mutable). Export processors run AFTER, inside OpenTelemetry.
        """
        if self._ended:
            logger.warning("Span '%s' ended more than once; ignoring", self.name)
            return

        self.end_time_ns = time.time_ns()
        if self._status is None:
            self.set_status(STATUS_OK)

        # 1. Run enrichment processors (span is still mutable)
        if self.tracer is not None:
            self.tracer._run_enrichment_processors(self)

        # 2. End the OTel span (hands it to export processors)
        self._ended = True
        self._otel_span.end(end_time=self.end_time_ns)

    # Context manager support: bind as current, end on exit
    def __enter__(self) -> "Span":
        from tracehop.context.context import SpanScope

        self._scopes.append(SpanScope(self, end_on_exit=True))
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._scopes.pop().close(exc)
        return False

    async def __aenter__(self) -> "Span":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return self.__exit__(exc_type, exc, tb)

    def __repr__(self) -> str:
        return (
            f"Span(name={self.name!r}, trace_id={self.context.trace_id}, "
            f"span_id={self.context.span_id}, status={self.status.name})"
        )


class NoopSpan(Span):
    """
    Stand-in returned when no span is current.

    Same interface as Span; every mutation is a silent no-op and it never ends,
    so callers never need to check for an absent span.
    """

    def __init__(self) -> None:
        super().__init__(INVALID_SPAN, None, name="noop")

    @property
    def is_sampled(self) -> bool:
        return False

    def set_attribute(self, key: str, value: Any) -> None:
        return None

    def record_exception(self, error: BaseException) -> None:
        return None

    def set_status(self, status, description: Optional[str] = None) -> None:
        return None

    def end(self) -> None:
        return None

    # Shared across threads and tasks: entering binds nothing and keeps no state.
    def __enter__(self) -> "NoopSpan":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoopSpan()"


NOOP_SPAN = NoopSpan()
