"""
Resizable thread-backed worker pool.

WorkerPool hands out concurrent.futures.Future objects like a standard
executor, but its core and maximum sizes can be changed while it runs,
and it reports point-in-time statistics for the adaptive manager.

Submission order:
1. Start a new worker while fewer than core_size workers exist
2. Otherwise queue the task
3. If the queue is full, start a worker while fewer than max_size exist
4. Otherwise run the task in the submitting thread (back-pressure); offer
   instead returns None and leaves the decision to the caller

Workers above core_size retire after keep_alive seconds without work.
Resizing never interrupts running tasks.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
import itertools
import logging
import os
import queue
import threading
import time
from typing import TYPE_CHECKING, Any, Callable

from ..utils.logging import log_event

if TYPE_CHECKING:
    from ..config import PoolsConfig

logger = logging.getLogger(__name__)

# How often idle workers wake up to check for retirement or shutdown
_POLL_SECONDS = 0.5


@dataclass(frozen=True)
class PoolSnapshot:
    """Point-in-time read of one pool's state.

    Attributes:
        name: Pool name
        active_count: Workers currently running a task
        pool_size: Live worker threads
        core_pool_size: Configured core size
        max_pool_size: Configured maximum size
        queue_size: Tasks waiting in the queue
        remaining_capacity: Free queue slots
        completed_task_count: Tasks finished since creation
        task_count: Tasks submitted since creation
    """
    name: str
    active_count: int
    pool_size: int
    core_pool_size: int
    max_pool_size: int
    queue_size: int
    remaining_capacity: int
    completed_task_count: int
    task_count: int


class _WorkItem:
    __slots__ = ("future", "fn", "args", "kwargs")

    def __init__(self, fn: Callable[..., Any], args: tuple, kwargs: dict):
        self.future: Future = Future()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs


def _validate_sizes(core_size: int, max_size: int) -> None:
    if core_size < 0 or max_size < 1 or core_size > max_size:
        raise ValueError(f"Invalid pool sizes: core={core_size}, max={max_size}")


class WorkerPool:
    """Executor with adjustable core/max worker counts and a bounded queue."""

    def __init__(
        self,
        name: str,
        core_size: int,
        max_size: int,
        queue_capacity: int,
        keep_alive: float = 60.0,
    ):
        _validate_sizes(core_size, max_size)
        if queue_capacity < 1:
            raise ValueError(f"Queue capacity must be positive: {queue_capacity}")
        self.name = name
        self._core_size = core_size
        self._max_size = max_size
        self._queue_capacity = queue_capacity
        self._keep_alive = keep_alive
        self._queue: queue.Queue[_WorkItem] = queue.Queue(maxsize=queue_capacity)
        self._lock = threading.Lock()
        self._workers: set[threading.Thread] = set()
        self._thread_ids = itertools.count(1)
        self._active = 0
        self._completed = 0
        self._submitted = 0
        self._shutdown = False

    @property
    def core_size(self) -> int:
        return self._core_size

    @property
    def max_size(self) -> int:
        return self._max_size

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        """Schedule ``fn(*args, **kwargs)`` and return its future.

        A saturated pool runs the task in the calling thread before returning.

        Raises:
            RuntimeError: If the pool has been shut down
        """
        item = _WorkItem(fn, args, kwargs)
        if self._dispatch(item, caller_runs=True):
            return item.future

        logger.debug("Pool %s saturated, running task in caller thread", self.name)
        self._run(item)
        return item.future

    def offer(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future | None:
        """Schedule ``fn(*args, **kwargs)`` only if a worker or queue slot is free.

        Returns:
            The task's future, or None when the pool is saturated. The task is
            never run in the calling thread.

        Raises:
            RuntimeError: If the pool has been shut down
        """
        item = _WorkItem(fn, args, kwargs)
        if self._dispatch(item, caller_runs=False):
            return item.future
        return None

    def _dispatch(self, item: _WorkItem, caller_runs: bool) -> bool:
        """Hand ``item`` to a worker or the queue; False if the pool is saturated."""
        with self._lock:
            if self._shutdown:
                raise RuntimeError(f"Pool {self.name} is shut down")
            if len(self._workers) < self._core_size:
                self._submitted += 1
                self._start_worker(item)
                return True
            try:
                self._queue.put_nowait(item)
            except queue.Full:
                if len(self._workers) < self._max_size:
                    self._submitted += 1
                    self._start_worker(item)
                    return True
                if caller_runs:
                    self._submitted += 1
                return False
            self._submitted += 1
            if not self._workers:
                self._start_worker(None)
            return True

    def resize(self, core_size: int, max_size: int) -> None:
        """Change the core and maximum worker counts.

        Growing the core starts workers for tasks already waiting; shrinking
        lets surplus workers retire once idle.

        Raises:
            ValueError: If the sizes are inconsistent
            RuntimeError: If the pool has been shut down
        """
        _validate_sizes(core_size, max_size)
        with self._lock:
            if self._shutdown:
                raise RuntimeError(f"Pool {self.name} is shut down")
            self._core_size = core_size
            self._max_size = max_size
            missing = min(core_size - len(self._workers), self._queue.qsize())
            for _ in range(max(0, missing)):
                self._start_worker(None)

    def snapshot(self) -> PoolSnapshot:
        with self._lock:
            queued = self._queue.qsize()
            return PoolSnapshot(
                name=self.name,
                active_count=self._active,
                pool_size=len(self._workers),
                core_pool_size=self._core_size,
                max_pool_size=self._max_size,
                queue_size=queued,
                remaining_capacity=max(0, self._queue_capacity - queued),
                completed_task_count=self._completed,
                task_count=self._submitted,
            )

    def shutdown(self, grace: float | None = None) -> bool:
        """Stop accepting work and drain the queue.

        Args:
            grace: Seconds to wait for queued and running tasks; None waits
                indefinitely

        Returns:
            True if every worker finished within the grace period. Otherwise
            the tasks still queued are cancelled and False is returned.
        """
        with self._lock:
            self._shutdown = True
            workers = [w for w in self._workers if w is not threading.current_thread()]

        deadline = None if grace is None else time.monotonic() + grace
        for worker in workers:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            worker.join(remaining)

        if not any(worker.is_alive() for worker in workers):
            return True

        cancelled = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item.future.cancel():
                cancelled += 1
        log_event(
            logger,
            "Pool shutdown grace period exceeded",
            logging.WARNING,
            event="pool_shutdown_forced",
            pool=self.name,
            cancelled=cancelled,
        )
        return False

    def _start_worker(self, first: _WorkItem | None) -> None:
        # Caller holds self._lock
        thread = threading.Thread(
            target=self._worker,
            args=(first,),
            name=f"{self.name}-{next(self._thread_ids)}",
            daemon=True,
        )
        self._workers.add(thread)
        thread.start()

    def _worker(self, first: _WorkItem | None) -> None:
        me = threading.current_thread()
        if first is not None:
            self._run(first)
        idle_since = time.monotonic()
        while True:
            try:
                item = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                with self._lock:
                    # Queue is only filled under the lock, so empty() is stable here
                    if self._queue.empty() and (
                        self._shutdown
                        or (
                            len(self._workers) > self._core_size
                            and time.monotonic() - idle_since >= self._keep_alive
                        )
                    ):
                        self._workers.discard(me)
                        return
                continue
            self._run(item)
            idle_since = time.monotonic()

    def _run(self, item: _WorkItem) -> None:
        if not item.future.set_running_or_notify_cancel():
            return
        with self._lock:
            self._active += 1
        try:
            result = item.fn(*item.args, **item.kwargs)
        except BaseException as exc:  # noqa: BLE001
            item.future.set_exception(exc)
        else:
            item.future.set_result(result)
        finally:
            with self._lock:
                self._active -= 1
                self._completed += 1


def create_pools(cfg: PoolsConfig, cores: int | None = None) -> tuple[WorkerPool, WorkerPool]:
    """Build the shared I/O and CPU pools.

    The CPU pool is bounded by the number of available cores.
    """
    cores = cores or os.cpu_count() or 1
    io_pool = WorkerPool(
        "io",
        core_size=cfg.io.core_size,
        max_size=cfg.io.max_size,
        queue_capacity=cfg.io.queue_capacity,
        keep_alive=cfg.io.keep_alive_seconds,
    )
    cpu_core = min(cores, cfg.cpu.core_size)
    cpu_pool = WorkerPool(
        "cpu",
        core_size=cpu_core,
        max_size=max(cpu_core, min(cores * 2, cfg.cpu.max_size)),
        queue_capacity=cfg.cpu.queue_capacity,
        keep_alive=cfg.cpu.keep_alive_seconds,
    )
    log_event(
        logger,
        "Worker pools created",
        event="pools_created",
        io_core=io_pool.core_size,
        io_max=io_pool.max_size,
        cpu_core=cpu_pool.core_size,
        cpu_max=cpu_pool.max_size,
    )
    return io_pool, cpu_pool
