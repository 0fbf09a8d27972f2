"""Shared fixtures: an in-memory tracer provider and a local HTTP endpoint."""

import http.server
import socket
import threading
import time

import pytest
import requests
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from tracehop import TracerProvider, set_tracer_provider
from tracehop.instrumentation import traced_session


class _Handler(http.server.BaseHTTPRequestHandler):
    """
    /missing...   -> 404
    /status/<n>   -> n
    /slow         -> 200 after a short delay
    anything else -> 200; the body echoes the path
    """

    def do_GET(self):
        self.server.received.append((self.path, dict(self.headers)))
        status = 200
        if self.path.startswith("/missing"):
            status = 404
        elif self.path.startswith("/status/"):
            status = int(self.path.rsplit("/", 1)[1])
        elif self.path.startswith("/slow"):
            time.sleep(0.5)

        body = self.path.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def provider(exporter):
    provider = TracerProvider(resource={"service.name": "tracehop-tests"})
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    set_tracer_provider(provider)
    yield provider
    set_tracer_provider(None)
    provider.shutdown()


@pytest.fixture
def tracer(provider):
    return provider.get_tracer("tests")


@pytest.fixture
def http_server():
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.received = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def base_url(http_server):
    host, port = http_server.server_address[:2]
    return f"http://{host}:{port}"


@pytest.fixture
def unreachable_url():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}"


@pytest.fixture
def session(tracer):
    raw = requests.Session()
    # Local endpoints only; keep proxy settings from the environment out of the way.
    raw.trust_env = False
    session = traced_session(tracer=tracer, session=raw)
    yield session
    session.close()


@pytest.fixture
def spans_named(exporter):
    def _spans_named(name):
        return [span for span in exporter.get_finished_spans() if span.name == name]
    return _spans_named
