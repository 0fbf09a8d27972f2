"""Tests for span propagation through executors."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from tracehop.context import get_current_span
from tracehop.executor import (
    SpanPropagatingCallable,
    TraceContextExecutor,
    get_default_executor,
    shutdown_default_executor,
    wrap_with_span,
)
from tracehop.tracer import NOOP_SPAN


@pytest.fixture
def executor():
    executor = TraceContextExecutor(max_workers=1)
    yield executor
    executor.shutdown()


def test_task_sees_submitters_span(tracer, executor):
    with tracer.scoped_span("parent") as parent:
        future = executor.submit(get_current_span)
        assert future.result(timeout=5) is parent


def test_binding_does_not_leak_to_next_task(tracer, executor):
    with tracer.scoped_span("parent") as parent:
        assert executor.submit(get_current_span).result(timeout=5) is parent

    # Same single worker thread, submitted with nothing bound.
    assert executor.submit(get_current_span).result(timeout=5) is NOOP_SPAN


def test_span_is_captured_at_submit_time(tracer, executor):
    release = threading.Event()
    # Occupy the only worker so the next task is queued, not started.
    blocker = executor.submit(release.wait, 5)

    with tracer.scoped_span("at-submit") as at_submit:
        queued = executor.submit(get_current_span)
    with tracer.scoped_span("at-run"):
        release.set()
        assert queued.result(timeout=5) is at_submit
    assert blocker.result(timeout=5) is True


def test_concurrent_submitters_are_isolated(tracer):
    executor = TraceContextExecutor(max_workers=2)
    barrier = threading.Barrier(2, timeout=5)

    def observe():
        # Both tasks run at the same time on different workers.
        barrier.wait()
        return get_current_span()

    try:
        with tracer.scoped_span("first") as first:
            first_future = executor.submit(observe)
        with tracer.scoped_span("second") as second:
            second_future = executor.submit(observe)

        assert first_future.result(timeout=5) is first
        assert second_future.result(timeout=5) is second
    finally:
        executor.shutdown()


def test_sequential_submissions_use_their_own_span(tracer, executor):
    seen = []
    for name in ("a", "b", "c"):
        with tracer.scoped_span(name) as span:
            seen.append((span, executor.submit(get_current_span).result(timeout=5)))
    assert all(expected is actual for expected, actual in seen)


def test_exceptions_pass_through(tracer, executor):
    class TaskError(Exception):
        pass

    error = TaskError("task failed")

    def fail():
        raise error

    with tracer.scoped_span("parent"):
        future = executor.submit(fail)
    with pytest.raises(TaskError) as excinfo:
        future.result(timeout=5)
    assert excinfo.value is error


def test_spans_started_in_task_join_the_trace(tracer, executor, spans_named):
    def work():
        with tracer.scoped_span("child"):
            return "done"

    with tracer.scoped_span("parent") as parent:
        assert executor.submit(work).result(timeout=5) == "done"

    (child,) = spans_named("child")
    assert child.parent.span_id == int(parent.context.span_id, 16)
    assert child.context.trace_id == int(parent.context.trace_id, 16)


def test_task_without_propagation_starts_new_trace(tracer, spans_named):
    def work():
        with tracer.scoped_span("orphan"):
            return get_current_span()

    pool = ThreadPoolExecutor(max_workers=1)
    try:
        with tracer.scoped_span("parent"):
            pool.submit(work).result(timeout=5)
    finally:
        pool.shutdown()

    (orphan,) = spans_named("orphan")
    assert orphan.parent is None


def test_map_propagates(tracer, executor):
    with tracer.scoped_span("parent") as parent:
        results = list(executor.map(lambda _: get_current_span(), range(3)))
    assert all(span is parent for span in results)


def test_arguments_and_return_values(executor):
    assert executor.submit(pow, 2, exp=10).result(timeout=5) == 1024


def test_wrap_with_span(tracer):
    span = tracer.start_span("explicit")

    def report(prefix):
        return prefix, get_current_span()

    wrapped = wrap_with_span(report, span)
    assert isinstance(wrapped, SpanPropagatingCallable)
    assert wrapped.__name__ == "report"
    assert wrapped("x") == ("x", span)
    # The caller's binding is untouched.
    assert get_current_span() is NOOP_SPAN
    span.end()


def test_wrap_with_span_defaults_to_current(tracer):
    with tracer.scoped_span("current") as current:
        wrapped = wrap_with_span(get_current_span)
    assert wrapped() is current


def test_injected_delegate_is_not_shut_down(tracer):
    pool = ThreadPoolExecutor(max_workers=1)
    executor = TraceContextExecutor(delegate=pool)
    executor.shutdown()
    try:
        assert pool.submit(lambda: 42).result(timeout=5) == 42
    finally:
        pool.shutdown()


def test_default_executor_is_shared():
    try:
        assert get_default_executor() is get_default_executor()
    finally:
        shutdown_default_executor()
