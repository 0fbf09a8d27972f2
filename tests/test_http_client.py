"""Tests for the requests tracing layer and the server-side helpers."""

import pytest
import requests
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind
from opentelemetry.trace import StatusCode as OTelStatusCode

from tracehop.client import SampleClient
from tracehop.context import extract
from tracehop.instrumentation import (
    TracingInterceptor,
    extract_parent_context,
    get_span_name,
    start_server_span,
    traced_session,
)
from tracehop.processors import AlwaysOffSampler
from tracehop.tracer import CanonicalCode, SpanStatus, TracerProvider

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"


def _lowered(headers):
    return {key.lower(): value for key, value in headers.items()}


def _prepared(url, method="GET"):
    return requests.Request(method, url).prepare()


def _response(status_code):
    response = requests.Response()
    response.status_code = status_code
    return response


@pytest.fixture
def client(base_url, session, tracer):
    client = SampleClient(base_url, session=session, tracer=tracer)
    yield client
    client.close()


class TestGet1:
    def test_successful_call(self, client, base_url, spans_named):
        assert client.get1("/compute") == "/compute"

        (operation,) = spans_named("sample.client/get")
        (http_span,) = spans_named("/compute")

        assert operation.kind is SpanKind.CLIENT
        assert operation.status.status_code is OTelStatusCode.OK
        assert operation.attributes["client.endpoint"] == base_url
        assert operation.attributes["path"] == "/compute"

        assert http_span.kind is SpanKind.CLIENT
        assert http_span.parent.span_id == operation.context.span_id
        assert http_span.status.status_code is OTelStatusCode.OK
        assert http_span.attributes["http.method"] == "GET"
        assert http_span.attributes["http.path"] == "/compute"
        assert http_span.attributes["http.host"] == "127.0.0.1"
        assert http_span.attributes["http.url"] == base_url + "/compute"
        assert http_span.attributes["http.status_code"] == 200

    def test_remote_receives_http_span_context(self, client, http_server, spans_named):
        client.get1("/compute")

        (http_span,) = spans_named("/compute")
        ((path, headers),) = http_server.received
        assert path == "/compute"

        received = extract(_lowered(headers))
        assert received is not None
        assert received.trace_id == format(http_span.context.trace_id, "032x")
        assert received.span_id == format(http_span.context.span_id, "016x")
        assert received.is_sampled

    def test_not_found(self, client, spans_named):
        assert client.get1("/missing") == "/missing"

        (operation,) = spans_named("sample.client/get")
        (http_span,) = spans_named("/missing")
        assert http_span.attributes["http.status_code"] == 404
        assert http_span.status.status_code is OTelStatusCode.ERROR
        assert http_span.status.description.startswith("NOT_FOUND")
        assert operation.status.description.startswith("NOT_FOUND")

    @pytest.mark.parametrize(
        "status_code, code",
        [(401, "UNAUTHENTICATED"), (429, "RESOURCE_EXHAUSTED"), (503, "UNAVAILABLE")],
    )
    def test_error_statuses(self, client, spans_named, status_code, code):
        client.get1(f"/status/{status_code}")
        (http_span,) = spans_named(f"/status/{status_code}")
        assert http_span.status.description.startswith(code)

    def test_transport_failure(self, unreachable_url, session, tracer, spans_named):
        with SampleClient(unreachable_url, session=session, tracer=tracer) as client:
            with pytest.raises(requests.ConnectionError):
                client.get1("/compute")

        (operation,) = spans_named("sample.client/get")
        (http_span,) = spans_named("/compute")
        assert http_span.attributes["http.status_code"] == 0
        assert http_span.status.description.startswith("UNAVAILABLE")
        assert operation.status.description.startswith("UNAVAILABLE")
        assert tracer.current_span().is_sampled is False

    def test_unsampled_trace_is_marked_and_not_exported(self, base_url, http_server):
        exporter = InMemorySpanExporter()
        provider = TracerProvider(sampler=AlwaysOffSampler())
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        tracer = provider.get_tracer("unsampled")

        raw = requests.Session()
        raw.trust_env = False
        try:
            with SampleClient(base_url, session=traced_session(tracer, raw), tracer=tracer) as client:
                assert client.get1("/compute") == "/compute"
        finally:
            raw.close()
            provider.shutdown()

        ((_, headers),) = http_server.received
        assert _lowered(headers)["traceparent"].endswith("-00")
        assert exporter.get_finished_spans() == ()


class TestInterceptor:
    @pytest.mark.parametrize(
        "url, name",
        [
            ("http://example.test/a/b", "/a/b"),
            ("http://example.test/a?x=1", "/a"),
            ("http://example.test", "/"),
        ],
    )
    def test_span_name(self, url, name):
        assert get_span_name(_prepared(url)) == name

    def test_injects_into_outgoing_copy(self, tracer, exporter):
        request = _prepared("http://example.test/items")
        sent = []

        def proceed(outgoing):
            sent.append(outgoing)
            return _response(503)

        response = TracingInterceptor(tracer).intercept(request, proceed)

        assert response.status_code == 503
        assert "traceparent" not in request.headers
        (finished,) = exporter.get_finished_spans()
        assert extract(dict(sent[0].headers)).span_id == format(finished.context.span_id, "016x")
        assert finished.status.description.startswith("UNAVAILABLE")
        assert finished.attributes["http.status_code"] == 503

    def test_error_is_reraised_unchanged(self, tracer, exporter):
        error = RuntimeError("socket closed")

        def proceed(outgoing):
            raise error

        with pytest.raises(RuntimeError) as excinfo:
            TracingInterceptor(tracer).intercept(_prepared("http://example.test/x"), proceed)

        assert excinfo.value is error
        (finished,) = exporter.get_finished_spans()
        assert finished.status.status_code is OTelStatusCode.ERROR
        assert finished.attributes["http.status_code"] == 0
        assert tracer.current_span().is_sampled is False

    def test_uses_global_tracer_by_default(self, provider, exporter):
        TracingInterceptor().intercept(_prepared("http://example.test/global"), lambda r: _response(200))
        (finished,) = exporter.get_finished_spans()
        assert finished.name == "/global"


class TestServerSpan:
    def test_continues_incoming_trace(self, tracer):
        headers = {"Traceparent": f"00-{TRACE_ID}-{SPAN_ID}-01"}
        assert extract_parent_context(headers).span_id == SPAN_ID

        with start_server_span(tracer, "GET /items", headers) as span:
            assert tracer.current_span() is span
        assert span.kind is SpanKind.SERVER
        assert span.context.trace_id == TRACE_ID
        assert span.parent_span_id == SPAN_ID

    def test_garbage_headers_start_a_root(self, tracer):
        with tracer.scoped_span("unrelated") as unrelated:
            with start_server_span(tracer, "GET /items", {"traceparent": "garbage"}) as span:
                pass
        assert span.parent_span_id is None
        assert span.context.trace_id != unrelated.context.trace_id
        assert span.status is SpanStatus.OK

    def test_attributes(self, tracer):
        with start_server_span(tracer, "GET /items", {}, attributes={"http.method": "GET"}) as span:
            pass
        assert span.attributes == {"http.method": "GET"}
        assert span.canonical_status.canonical_code is CanonicalCode.OK
