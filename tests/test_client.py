"""Tests for SampleClient: the same call made inline, by hand on a pool, and through the propagating executor."""

import asyncio
import logging

import pytest
from opentelemetry.trace import SpanKind

from tracehop.client import SampleClient

OPERATION = "sample.client/get"


@pytest.fixture
def client(base_url, session, tracer):
    client = SampleClient(base_url, session=session, tracer=tracer)
    yield client
    client.close()


def _assert_child_of(span, parent):
    assert span.parent is not None
    assert span.parent.span_id == int(parent.context.span_id, 16)
    assert span.context.trace_id == int(parent.context.trace_id, 16)


@pytest.mark.parametrize("method", ["get1", "get2", "get3"])
def test_operation_joins_the_incoming_trace(client, tracer, spans_named, method):
    with tracer.scoped_span("incoming request", kind=SpanKind.SERVER) as incoming:
        assert getattr(client, method)("/compute") == "/compute"

    (operation,) = spans_named(OPERATION)
    (http_span,) = spans_named("/compute")
    _assert_child_of(operation, incoming)
    assert http_span.parent.span_id == operation.context.span_id


@pytest.mark.parametrize("method", ["get2", "get3"])
def test_pool_thread_binding_is_restored(client, tracer, spans_named, method):
    with tracer.scoped_span("incoming request", kind=SpanKind.SERVER):
        getattr(client, method)("/compute")
    # The pool thread is reused; a later call made with nothing bound starts a new trace.
    assert getattr(client, method)("/again") == "/again"

    first, second = spans_named(OPERATION)
    assert first.parent is not None
    assert second.parent is None


def test_without_a_current_span_operation_is_root(client, spans_named):
    client.get3("/compute")
    (operation,) = spans_named(OPERATION)
    assert operation.parent is None


@pytest.mark.parametrize("method", ["get2", "get3"])
def test_task_failure_returns_none(unreachable_url, session, tracer, caplog, spans_named, method):
    with SampleClient(unreachable_url, session=session, tracer=tracer) as client:
        with caplog.at_level(logging.ERROR, logger="tracehop.client"):
            assert getattr(client, method)("/compute") is None

    (record,) = [r for r in caplog.records if r.name == "tracehop.client"]
    assert record.getMessage() == "GET /compute failed"
    assert record.exc_info is not None
    (operation,) = spans_named(OPERATION)
    assert operation.status.description.startswith("UNAVAILABLE")


def test_wait_timeout_returns_none(base_url, session, tracer, caplog, spans_named):
    client = SampleClient(base_url, session=session, tracer=tracer, timeout=0.05)
    with caplog.at_level(logging.WARNING, logger="tracehop.client"):
        assert client.get3("/slow") is None
    assert "Timed out" in caplog.text

    # The call itself keeps running; closing the client waits for it.
    client.close()
    assert len(spans_named("/slow")) == 1
    assert len(spans_named(OPERATION)) == 1


def test_aget(client, tracer, spans_named):
    async def handler():
        with tracer.scoped_span("incoming request", kind=SpanKind.SERVER) as incoming:
            body = await client.aget("/compute")
        return incoming, body

    incoming, body = asyncio.run(handler())

    assert body == "/compute"
    (operation,) = spans_named(OPERATION)
    _assert_child_of(operation, incoming)


def test_aget_timeout(base_url, session, tracer, caplog):
    client = SampleClient(base_url, session=session, tracer=tracer, timeout=0.05)
    try:
        with caplog.at_level(logging.WARNING, logger="tracehop.client"):
            assert asyncio.run(client.aget("/slow")) is None
        assert "Timed out" in caplog.text
    finally:
        client.close()


def test_aget_failure_returns_none(unreachable_url, session, tracer, caplog):
    with SampleClient(unreachable_url, session=session, tracer=tracer) as client:
        with caplog.at_level(logging.ERROR, logger="tracehop.client"):
            assert asyncio.run(client.aget("/compute")) is None
    assert "GET /compute failed" in caplog.text


def test_close_keeps_injected_session(base_url, session, tracer):
    SampleClient(base_url, session=session, tracer=tracer).close()
    # The caller's session is still usable.
    assert session.get(base_url + "/after-close").text == "/after-close"
