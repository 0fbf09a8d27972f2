"""tracehop: trace-context propagation across threads, executors and HTTP calls."""

from tracehop.tracer import (
    INVALID_SPAN_CONTEXT,
    NOOP_SPAN,
    CanonicalCode,
    Span,
    SpanContext,
    SpanProcessor,
    SpanStatus,
    Status,
    Tracer,
    TracerProvider,
)
from tracehop.context import (
    SpanScope,
    TraceContextFormat,
    extract,
    get_current_span,
    inject,
    inject_headers,
    use_span,
)
from tracehop.executor import TraceContextExecutor, get_default_executor, wrap_with_span
from tracehop.auto import (
    get_tracer,
    get_tracer_provider,
    set_tracer_provider,
    start_tracing,
    stop_tracing,
)
from tracehop.client import SampleClient
from tracehop.errors import ConfigError, InitializationError, TracehopError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Span",
    "SpanContext",
    "INVALID_SPAN_CONTEXT",
    "NOOP_SPAN",
    "SpanStatus",
    "CanonicalCode",
    "Status",
    "Tracer",
    "TracerProvider",
    "SpanProcessor",
    "SpanScope",
    "TraceContextFormat",
    "inject",
    "extract",
    "inject_headers",
    "get_current_span",
    "use_span",
    "TraceContextExecutor",
    "get_default_executor",
    "wrap_with_span",
    "start_tracing",
    "stop_tracing",
    "get_tracer",
    "get_tracer_provider",
    "set_tracer_provider",
    "SampleClient",
    "TracehopError",
    "ConfigError",
    "InitializationError",
]
