"""Sample client showing the three ways a span reaches the code doing the work.

- `get1`: synchronous; the span is current on the calling thread throughout.
- `get2`: hands work to a thread pool and re-binds the captured span by hand
  inside the task.
- `get3`: same as `get2`, but the propagating executor does the re-binding.

`aget` is the asyncio flavour of `get3`.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from typing import Optional

import requests
from opentelemetry.trace import SpanKind

from tracehop import runtime_config
from tracehop.executor import TraceContextExecutor
from tracehop.instrumentation.http_client import traced_session
from tracehop.instrumentation.http_status import CallOutcome
from tracehop.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

ENDPOINT_ATTRIBUTE = "client.endpoint"
PATH_ATTRIBUTE = "path"


class SampleClient:
    """
    Client for a remote HTTP endpoint, traced end to end.

    Every operation opens a CLIENT span named `<component>/get`; the HTTP layer
    (a traced `requests` session) adds a child span per request and injects
    the trace context into the request headers.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        session: Optional[requests.Session] = None,
        executor: Optional[Executor] = None,
        tracer: Optional[Tracer] = None,
        component: str = "sample.client",
        timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            endpoint: Base URL; request paths are appended to it
            session: Session to send with; a traced session is created when omitted
            executor: Propagating executor for get3/aget; built on the client's pool when omitted
            tracer: Tracer to use; the global tracer when omitted
            component: Prefix of the operation span names
            timeout: Seconds get2/get3/aget wait for the result (None = no limit)
        """
        self.endpoint = endpoint.rstrip("/")
        self.component = component
        self.timeout = timeout
        self._tracer = tracer

        self._owns_session = session is None
        self._session = session if session is not None else traced_session(tracer=tracer)

        self._pool = ThreadPoolExecutor(
            max_workers=runtime_config.get_max_workers(),
            thread_name_prefix="sample-client",
        )
        self._owns_executor = executor is None
        self._executor = executor if executor is not None else TraceContextExecutor(delegate=self._pool)

    @property
    def tracer(self) -> Tracer:
        if self._tracer is None:
            from tracehop.auto import get_tracer
            return get_tracer(__name__)
        return self._tracer

    def get1(self, path: str) -> str:
        """
        Synchronous GET of `path`; returns the response body.

        The span status reflects the outcome. Transport errors are re-raised
        after the status has been recorded.
        """
        with self.tracer.scoped_span(f"{self.component}/get", kind=SpanKind.CLIENT) as span:
            # Unsampled spans are not recorded; skip the attribute work.
            if span.is_sampled:
                span.set_attribute(ENDPOINT_ATTRIBUTE, self.endpoint)
                span.set_attribute(PATH_ATTRIBUTE, path)

            response = None
            error = None
            try:
                response = self._do_internal(path)
                return response.text
            except requests.RequestException as exc:
                error = exc
                raise
            finally:
                span.set_status(CallOutcome(response, error).status())

    def get2(self, path: str) -> Optional[str]:
        """get1 on a pool thread, propagating the current span by hand. None on failure."""
        current_span = self.tracer.current_span()

        def task() -> str:
            # Pool threads start without a current span; restore the caller's
            # so spans started by get1 join its trace.
            with self.tracer.with_span(current_span):
                return self.get1(path)

        return self._wait(self._pool.submit(task), path)

    def get3(self, path: str) -> Optional[str]:
        """get1 through the propagating executor; no manual propagation. None on failure."""
        return self._wait(self._executor.submit(self.get1, path), path)

    async def aget(self, path: str) -> Optional[str]:
        """Awaitable get1 run on the propagating executor. None on failure."""
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, self.get1, path)
        try:
            return await asyncio.wait_for(future, self.timeout)
        except TimeoutError:
            logger.warning("Timed out after %ss waiting for GET %s", self.timeout, path)
        except Exception:
            logger.exception("GET %s failed", path)
        return None

    def _wait(self, future: "Future[str]", path: str) -> Optional[str]:
        # TODO: callers cannot tell a failed call from an empty result; surface the error once
        # a retry policy exists in the HTTP layer.
        try:
            return future.result(timeout=self.timeout)
        except CancelledError:
            logger.warning("GET %s was cancelled before completing", path)
        except TimeoutError:
            if future.done():
                logger.exception("GET %s failed", path)
            else:
                future.cancel()
                logger.warning("Timed out after %ss waiting for GET %s", self.timeout, path)
        except Exception:
            logger.exception("GET %s failed", path)
        return None

    def _do_internal(self, path: str) -> requests.Response:
        return self._session.get(self.endpoint + path)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown()
        self._pool.shutdown()
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "SampleClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
