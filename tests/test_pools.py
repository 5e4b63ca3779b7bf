"""Tests for the resizable worker pool and timeout helpers."""

from __future__ import annotations

from concurrent.futures import Future
import threading
import time

import pytest

from news_relay.config import PoolsConfig
from news_relay.pools.pool import WorkerPool, create_pools
from news_relay.pools.tasks import combine, submit_with_timeout, with_timeout


def _blocker(started: threading.Event, release: threading.Event):
    def run():
        started.set()
        release.wait(5)
        return "released"

    return run


def test_submit_runs_tasks():
    pool = WorkerPool("test", core_size=2, max_size=4, queue_capacity=4)
    try:
        futures = [pool.submit(pow, n, 2) for n in range(6)]
        assert [future.result(timeout=5) for future in futures] == [0, 1, 4, 9, 16, 25]
    finally:
        pool.shutdown(grace=5)


def test_saturated_pool_runs_task_in_caller():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=1)
    started, release = threading.Event(), threading.Event()
    try:
        busy = pool.submit(_blocker(started, release))
        assert started.wait(5)
        queued = pool.submit(lambda: "queued")

        caller = pool.submit(threading.current_thread)

        assert caller.result(timeout=1) is threading.current_thread()
        snapshot = pool.snapshot()
        assert snapshot.active_count == 1
        assert snapshot.pool_size == 1
        assert snapshot.queue_size == 1
        assert snapshot.remaining_capacity == 0
        assert snapshot.task_count == 3

        release.set()
        assert busy.result(timeout=5) == "released"
        assert queued.result(timeout=5) == "queued"
    finally:
        release.set()
        pool.shutdown(grace=5)


def test_full_queue_grows_to_max_size():
    pool = WorkerPool("test", core_size=1, max_size=2, queue_capacity=1)
    started, release = threading.Event(), threading.Event()
    second_started = threading.Event()
    try:
        pool.submit(_blocker(started, release))
        assert started.wait(5)
        pool.submit(lambda: None)
        extra = pool.submit(_blocker(second_started, release))

        assert second_started.wait(5)
        assert pool.snapshot().pool_size == 2
        release.set()
        assert extra.result(timeout=5) == "released"
    finally:
        release.set()
        pool.shutdown(grace=5)


def test_resize_starts_workers_for_waiting_tasks():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=5)
    started, release = threading.Event(), threading.Event()
    try:
        pool.submit(_blocker(started, release))
        assert started.wait(5)
        waiting = [pool.submit(lambda n=n: n) for n in range(2)]

        pool.resize(3, 3)

        assert [future.result(timeout=5) for future in waiting] == [0, 1]
        snapshot = pool.snapshot()
        assert (snapshot.core_pool_size, snapshot.max_pool_size) == (3, 3)
    finally:
        release.set()
        pool.shutdown(grace=5)


def test_resize_rejects_inconsistent_sizes():
    pool = WorkerPool("test", core_size=1, max_size=2, queue_capacity=1)
    with pytest.raises(ValueError):
        pool.resize(5, 2)
    with pytest.raises(ValueError):
        WorkerPool("bad", core_size=1, max_size=0, queue_capacity=1)
    pool.shutdown()


def test_shutdown_stops_intake():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=1)
    pool.submit(lambda: None).result(timeout=5)

    assert pool.shutdown(grace=5) is True
    with pytest.raises(RuntimeError):
        pool.submit(lambda: None)


def test_shutdown_cancels_queued_work_after_grace():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=2)
    started, release = threading.Event(), threading.Event()
    pool.submit(_blocker(started, release))
    assert started.wait(5)
    queued = pool.submit(lambda: "never")

    try:
        assert pool.shutdown(grace=0.1) is False
        assert queued.cancelled()
    finally:
        release.set()


def test_cpu_pool_is_bounded_by_cores():
    io_pool, cpu_pool = create_pools(PoolsConfig(), cores=2)
    try:
        assert (io_pool.core_size, io_pool.max_size) == (10, 50)
        assert (cpu_pool.core_size, cpu_pool.max_size) == (2, 4)
    finally:
        io_pool.shutdown()
        cpu_pool.shutdown()


def test_with_timeout_passes_result_through():
    future: Future = Future()
    guarded = with_timeout(future, 5.0, "fallback", "test")

    future.set_result("value")

    assert guarded.result(timeout=1) == "value"


def test_with_timeout_falls_back_when_late():
    never: Future = Future()

    assert with_timeout(never, 0.05, "fallback", "test").result(timeout=2) == "fallback"


def test_with_timeout_falls_back_on_error():
    future: Future = Future()
    future.set_exception(ValueError("boom"))

    assert with_timeout(future, 5.0, None, "test").result(timeout=1) is None


def test_combine_runs_merge_once_both_inputs_are_done(cpu_pool):
    first: Future = Future()
    second: Future = Future()
    merged = combine(first, second, lambda a, b: f"{a}+{b}", cpu_pool)

    first.set_result("image")
    assert not merged.done()
    second.set_result("text")

    assert merged.result(timeout=5) == "image+text"


def test_combine_propagates_input_failure(cpu_pool):
    first: Future = Future()
    second: Future = Future()
    merged = combine(first, second, lambda a, b: (a, b), cpu_pool)

    first.set_exception(KeyError("missing"))
    second.set_result("text")

    with pytest.raises(KeyError):
        merged.result(timeout=5)


def test_submit_with_timeout_falls_back_when_pool_is_saturated():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=1)
    started, release = threading.Event(), threading.Event()
    try:
        pool.submit(_blocker(started, release))
        assert started.wait(5)
        pool.submit(lambda: "queued")
        assert pool.offer(lambda: "extra") is None

        begin = time.monotonic()
        guarded = submit_with_timeout(pool, time.sleep, 1.5, timeout=0.1, fallback="fb", operation="test")
        elapsed = time.monotonic() - begin

        assert elapsed < 0.5
        assert guarded.result(timeout=1) == "fb"
    finally:
        release.set()
        pool.shutdown(grace=5)


def test_submit_with_timeout_bounds_scheduled_work():
    pool = WorkerPool("test", core_size=1, max_size=1, queue_capacity=1)
    release = threading.Event()
    try:
        guarded = submit_with_timeout(pool, release.wait, 5, timeout=0.05, fallback="fb", operation="test")

        assert guarded.result(timeout=2) == "fb"
    finally:
        release.set()
        pool.shutdown(grace=5)
