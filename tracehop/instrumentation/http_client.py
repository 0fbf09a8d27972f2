"""Outbound HTTP tracing for `requests`.

`TracingInterceptor` wraps a single outbound call: it opens a CLIENT span named
after the request path, records request attributes, injects the span's context
into the request headers, delegates to the next layer and finalizes the span
status from the outcome. Transport errors are recorded and re-raised as is.

`TracingHTTPAdapter` plugs the interceptor into `requests` at the transport
adapter level, so every request sent through a mounted session is traced.
"""

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import urlsplit

import requests
from opentelemetry.trace import SpanKind
from requests.adapters import HTTPAdapter

from tracehop.context.propagators import inject_headers
from tracehop.instrumentation.http_status import CallOutcome
from tracehop.tracer.span import Span
from tracehop.tracer.tracer import Tracer

HTTP_HOST = "http.host"
HTTP_PATH = "http.path"
HTTP_METHOD = "http.method"
HTTP_URL = "http.url"
HTTP_STATUS_CODE = "http.status_code"

Proceed = Callable[[requests.PreparedRequest], requests.Response]


def get_span_name(request: requests.PreparedRequest) -> str:
    """Default span name: the request path, always absolute."""
    path = urlsplit(request.url or "").path
    if not path.startswith("/"):
        path = "/" + path
    return path


def _put_attribute_if_not_empty(span: Span, key: str, value: Optional[str]) -> None:
    if value:
        span.set_attribute(key, value)


def add_request_attributes(span: Span, request: requests.PreparedRequest) -> None:
    url = request.url or ""
    parts = urlsplit(url)
    _put_attribute_if_not_empty(span, HTTP_HOST, parts.hostname)
    _put_attribute_if_not_empty(span, HTTP_METHOD, request.method)
    _put_attribute_if_not_empty(span, HTTP_PATH, parts.path)
    _put_attribute_if_not_empty(span, HTTP_URL, url)


def end_span(span: Span, outcome: CallOutcome) -> None:
    """Record the status code (0 without a response) and the mapped status."""
    if span.is_sampled:
        span.set_attribute(HTTP_STATUS_CODE, outcome.status_code)
    span.set_status(outcome.status())


class TracingInterceptor:
    """Traces one outbound call per `intercept()` invocation."""

    def __init__(self, tracer: Optional[Tracer] = None) -> None:
        self._tracer = tracer

    @property
    def tracer(self) -> Tracer:
        if self._tracer is None:
            # Lazy import to avoid circular import when tracehop initializes.
            from tracehop.auto import get_tracer
            return get_tracer(__name__)
        return self._tracer

    def intercept(self, request: requests.PreparedRequest, proceed: Proceed) -> requests.Response:
        with self.tracer.scoped_span(get_span_name(request), kind=SpanKind.CLIENT) as span:
            if span.is_sampled:
                add_request_attributes(span, request)

            outgoing = request.copy()
            inject_headers(outgoing.headers)

            response = None
            error = None
            try:
                response = proceed(outgoing)
                return response
            except Exception as exc:
                error = exc
                raise
            finally:
                end_span(span, CallOutcome(response, error))


class TracingHTTPAdapter(HTTPAdapter):
    """HTTPAdapter that routes every send through a TracingInterceptor."""

    def __init__(
        self,
        tracer: Optional[Tracer] = None,
        interceptor: Optional[TracingInterceptor] = None,
        **kwargs,
    ) -> None:
        self.interceptor = interceptor or TracingInterceptor(tracer)
        super().__init__(**kwargs)

    def send(self, request, **kwargs):
        parent_send = super().send
        return self.interceptor.intercept(request, lambda prepared: parent_send(prepared, **kwargs))


def traced_session(
    tracer: Optional[Tracer] = None,
    session: Optional[requests.Session] = None,
) -> requests.Session:
    """Mount a TracingHTTPAdapter for http:// and https:// on a (new) session."""
    session = session or requests.Session()
    adapter = TracingHTTPAdapter(tracer=tracer)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
