"""Process-wide tracing setup: build, install and tear down the TracerProvider."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional

from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter

from tracehop import runtime_config
from tracehop.config import TracingConfig, load_config
from tracehop.errors import InitializationError
from tracehop.executor import shutdown_default_executor
from tracehop.exporter.console_exporter import ConsoleExporter
from tracehop.exporter.otlp_exporter import OTLPExporter
from tracehop.processors.logging_processor import LoggingSpanProcessor
from tracehop.processors.sampler import AlwaysOnSampler, Sampler
from tracehop.tracer.provider import TracerProvider
from tracehop.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

_provider: Optional[TracerProvider] = None
_fallback_provider: Optional[TracerProvider] = None
_lock = threading.Lock()


def _apply_runtime_config(config: TracingConfig) -> None:
    runtime_config.set_service_name(config.tracing.service_name)
    runtime_config.set_debug(config.tracing.debug)
    runtime_config.set_attr_truncation_limit(config.tracing.attr_truncation_limit)
    runtime_config.set_max_workers(config.executor.max_workers)


def build_provider(
    config: TracingConfig,
    sampler: Optional[Any] = None,
    exporters: Iterable[SpanExporter] = (),
) -> TracerProvider:
    """
    Build a TracerProvider from configuration.

    - OTLP export (batched) when an endpoint is configured
    - Console export when enabled
    - Extra exporters (e.g. in-memory for tests) are exported synchronously
    - Span summaries are logged when debug is on
    """
    if sampler is None:
        rate = config.tracing.sample_rate
        sampler = AlwaysOnSampler() if rate >= 1.0 else Sampler(rate)

    provider = TracerProvider(
        resource={"service.name": config.tracing.service_name},
        sampler=sampler,
    )

    if config.exporters.endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPExporter(
                    endpoint=config.exporters.endpoint,
                    api_key=config.exporters.api_key,
                    timeout=config.exporters.timeout,
                )
            )
        )
    if config.exporters.enable_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleExporter()))
    for exporter in exporters:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    if config.tracing.debug:
        provider.add_span_processor(LoggingSpanProcessor())

    return provider


def start_tracing(
    config_file: Optional[str] = None,
    *,
    sampler: Optional[Any] = None,
    exporters: Iterable[SpanExporter] = (),
    **overrides: Any,
) -> TracerProvider:
    """
    Configure and install the global TracerProvider.

    Idempotent: a second call logs a warning and returns the active provider.
    Configuration errors surface as ConfigError; anything else that prevents
    the provider from being built is raised as InitializationError.
    """
    global _provider
    with _lock:
        if _provider is not None:
            logger.warning("start_tracing() called while tracing is active; returning existing provider")
            return _provider

        config = load_config(config_file, **overrides)
        try:
            provider = build_provider(config, sampler=sampler, exporters=exporters)
        except Exception as exc:
            raise InitializationError(
                "Failed to initialize tracing",
                details={"service_name": config.tracing.service_name, "error": exc},
            ) from exc

        _apply_runtime_config(config)
        _provider = provider
        logger.info(
            "Tracing started for service '%s' (endpoint=%s)",
            config.tracing.service_name,
            config.exporters.endpoint,
        )
        return provider


def stop_tracing(timeout: Optional[float] = None) -> None:
    """Flush and shut down the global provider and the default executor."""
    global _provider
    with _lock:
        provider, _provider = _provider, None
    shutdown_default_executor()
    if provider is None:
        return
    try:
        provider.force_flush(timeout=timeout)
    finally:
        provider.shutdown()


def set_tracer_provider(provider: Optional[TracerProvider]) -> None:
    """Install `provider` as the global provider (None uninstalls without shutdown)."""
    global _provider
    with _lock:
        _provider = provider


def get_tracer_provider() -> TracerProvider:
    """
    Return the global provider.

    Before start_tracing() a provider without exporters is used, so
    instrumented code still propagates context even when nothing is exported.
    """
    global _fallback_provider
    with _lock:
        if _provider is not None:
            return _provider
        if _fallback_provider is None:
            logger.debug("Tracing not started; using a provider without exporters")
            _fallback_provider = TracerProvider()
        return _fallback_provider


def get_tracer(name: str) -> Tracer:
    return get_tracer_provider().get_tracer(name)
