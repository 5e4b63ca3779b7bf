"""
Timeout-bounded task helpers.

Every asynchronous unit of work in a cycle is wrapped so that it resolves
to a declared fallback instead of failing: on error, on cancellation, or
when its timeout elapses first. Two independent results are joined by a
single merge step submitted once both are available.
"""

from __future__ import annotations

from concurrent.futures import Future
import logging
import threading
from typing import Any, Callable, TypeVar

from ..utils.logging import log_event
from .pool import WorkerPool

logger = logging.getLogger(__name__)

T = TypeVar("T")
A = TypeVar("A")
B = TypeVar("B")


def with_timeout(future: Future, timeout: float, fallback: T, operation: str) -> Future:
    """Return a future that never fails.

    It resolves to the result of ``future``, or to ``fallback`` if
    ``future`` raises, is cancelled, or does not finish within ``timeout``
    seconds. The underlying work is not interrupted on timeout.

    Args:
        future: The future to guard
        timeout: Seconds to wait from now
        fallback: Value used when the work fails or is late
        operation: Human readable name for log messages
    """
    guarded: Future = Future()
    lock = threading.Lock()

    def _settle(value: Any) -> bool:
        with lock:
            if guarded.done():
                return False
            guarded.set_result(value)
            return True

    def _on_timeout() -> None:
        if _settle(fallback):
            log_event(
                logger,
                "Task timed out",
                logging.ERROR,
                event="task_timeout",
                operation=operation,
                timeout=timeout,
            )

    timer = threading.Timer(timeout, _on_timeout)
    timer.daemon = True

    def _on_done(done: Future) -> None:
        timer.cancel()
        try:
            value = done.result()
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Task failed",
                logging.ERROR,
                event="task_failed",
                operation=operation,
                error=f"{type(exc).__name__}: {exc}",
            )
            value = fallback
        _settle(value)

    timer.start()
    future.add_done_callback(_on_done)
    return guarded


def submit_with_timeout(
    pool: WorkerPool,
    fn: Callable[..., T],
    *args: Any,
    timeout: float,
    fallback: T,
    operation: str,
) -> Future:
    """Submit ``fn`` to ``pool`` and guard it with :func:`with_timeout`.

    A saturated pool would run ``fn`` in the calling thread, outside any
    timeout. In that case the task is not run and the result is
    ``fallback``.
    """
    future = pool.offer(fn, *args)
    if future is None:
        log_event(
            logger,
            "Pool saturated, task skipped",
            logging.WARNING,
            event="task_rejected",
            operation=operation,
            pool=pool.name,
        )
        rejected: Future = Future()
        rejected.set_result(fallback)
        return rejected
    return with_timeout(future, timeout, fallback, operation)


def combine(first: Future, second: Future, fn: Callable[[A, B], T], pool: WorkerPool) -> Future:
    """Run ``fn(first_result, second_result)`` on ``pool`` once both are done.

    The returned future carries the outcome of ``fn``, including its
    exception, or the exception of either input.
    """
    merged: Future = Future()
    pending = [2]
    lock = threading.Lock()

    def _relay(inner: Future) -> None:
        if inner.cancelled():
            merged.cancel()
            return
        exc = inner.exception()
        if exc is not None:
            merged.set_exception(exc)
        else:
            merged.set_result(inner.result())

    def _on_input_done(_: Future) -> None:
        with lock:
            pending[0] -= 1
            if pending[0]:
                return
        try:
            inner = pool.submit(fn, first.result(), second.result())
        except Exception as exc:  # noqa: BLE001
            merged.set_exception(exc)
            return
        inner.add_done_callback(_relay)

    first.add_done_callback(_on_input_done)
    second.add_done_callback(_on_input_done)
    return merged
