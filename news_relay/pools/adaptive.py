"""
Adaptive worker pool sizing.

On every tick the manager reads each managed pool's snapshot and decides:
- scale up when utilization is above the high threshold or the queue is
  more than half full
- scale down when utilization is below the low threshold and the queue is
  under a tenth full
- otherwise leave the pool alone (hysteresis band)

Sizes are truncated to whole workers after scaling.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import threading
from typing import TYPE_CHECKING, Callable

from ..utils.logging import log_event
from .pool import PoolSnapshot, WorkerPool

if TYPE_CHECKING:
    from ..config import AdaptiveConfig, PoolsConfig

logger = logging.getLogger(__name__)

QUEUE_HIGH_OCCUPANCY = 0.5
QUEUE_LOW_OCCUPANCY = 0.1
MAX_TO_CORE_RATIO = 1.5


@dataclass(frozen=True)
class ScalingPolicy:
    """Resize rules for one pool.

    Attributes:
        high_threshold: Utilization above which the pool grows
        low_threshold: Utilization below which the pool shrinks
        scale_factor: Multiplier applied to core and max sizes
        min_size: Floor for the core size when shrinking
        absolute_max: Ceiling for both sizes when growing
    """
    high_threshold: float
    low_threshold: float
    scale_factor: float
    min_size: int
    absolute_max: int


def utilization(snapshot: PoolSnapshot) -> float:
    if snapshot.pool_size == 0:
        return 0.0
    return snapshot.active_count / snapshot.pool_size


def queue_occupancy(snapshot: PoolSnapshot) -> float:
    if snapshot.queue_size == 0:
        return 0.0
    return snapshot.queue_size / (snapshot.queue_size + snapshot.remaining_capacity)


def plan_resize(snapshot: PoolSnapshot, policy: ScalingPolicy) -> tuple[int, int] | None:
    """Decide new (core, max) sizes for a pool, or None to leave it as is.

    Growth is applied if either size increases; shrinking only if both
    sizes decrease.
    """
    load = utilization(snapshot)
    occupancy = queue_occupancy(snapshot)
    core = snapshot.core_pool_size
    maximum = snapshot.max_pool_size

    if load > policy.high_threshold or occupancy > QUEUE_HIGH_OCCUPANCY:
        new_core = min(int(core * policy.scale_factor), policy.absolute_max)
        new_max = min(int(maximum * policy.scale_factor), policy.absolute_max)
        if new_core > core or new_max > maximum:
            return new_core, new_max
        return None

    if load < policy.low_threshold and occupancy < QUEUE_LOW_OCCUPANCY:
        new_core = max(int(core / policy.scale_factor), policy.min_size)
        new_max = max(int(maximum / policy.scale_factor), int(new_core * MAX_TO_CORE_RATIO))
        if new_core < core and new_max < maximum:
            return new_core, new_max

    return None


@dataclass
class ManagedPool:
    pool: WorkerPool
    policy: ScalingPolicy


def build_policies(
    pools_cfg: PoolsConfig, adaptive_cfg: AdaptiveConfig, cores: int | None = None
) -> tuple[ScalingPolicy, ScalingPolicy]:
    """Return the (io, cpu) scaling policies.

    The CPU pool's ceiling is additionally capped at twice the core count.
    """
    cores = cores or os.cpu_count() or 1
    io_policy = ScalingPolicy(
        high_threshold=adaptive_cfg.io_high_threshold,
        low_threshold=adaptive_cfg.io_low_threshold,
        scale_factor=adaptive_cfg.scale_factor,
        min_size=pools_cfg.io.min_size,
        absolute_max=pools_cfg.io.absolute_max_size,
    )
    cpu_policy = ScalingPolicy(
        high_threshold=adaptive_cfg.cpu_high_threshold,
        low_threshold=adaptive_cfg.cpu_low_threshold,
        scale_factor=adaptive_cfg.scale_factor,
        min_size=pools_cfg.cpu.min_size,
        absolute_max=min(pools_cfg.cpu.absolute_max_size, cores * 2),
    )
    return io_policy, cpu_policy


class AdaptivePoolManager:
    """Periodically resizes the managed pools and logs their metrics.

    Adjustment and metric logging each run on their own daemon thread.
    A failure while adjusting one pool skips that pool for the tick.
    """

    def __init__(
        self,
        pools: dict[str, ManagedPool],
        adjustment_interval: float = 300.0,
        metrics_interval: float = 60.0,
        enabled: bool = True,
    ):
        self._pools = pools
        self.adjustment_interval = adjustment_interval
        self.metrics_interval = metrics_interval
        self.enabled = enabled
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def adjust(self) -> dict[str, tuple[int, int]]:
        """Run one adjustment tick.

        Returns:
            New (core, max) sizes keyed by pool name, for pools that changed
        """
        if not self.enabled:
            return {}
        logger.debug("Running adaptive pool adjustment")
        changes: dict[str, tuple[int, int]] = {}
        for name, managed in self._pools.items():
            try:
                snapshot = managed.pool.snapshot()
                plan = plan_resize(snapshot, managed.policy)
                if plan is None:
                    continue
                managed.pool.resize(*plan)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    "Pool adjustment skipped",
                    logging.ERROR,
                    event="pool_adjust_failed",
                    pool=name,
                    error=f"{type(exc).__name__}: {exc}",
                )
                continue
            changes[name] = plan
            log_event(
                logger,
                f"Resized {name} pool: core {snapshot.core_pool_size} -> {plan[0]}, "
                f"max {snapshot.max_pool_size} -> {plan[1]}",
                event="pool_resized",
                pool=name,
                core_before=snapshot.core_pool_size,
                core_after=plan[0],
                max_before=snapshot.max_pool_size,
                max_after=plan[1],
                utilization=round(utilization(snapshot), 3),
                queue_occupancy=round(queue_occupancy(snapshot), 3),
            )
        return changes

    def log_metrics(self) -> dict[str, PoolSnapshot]:
        snapshots: dict[str, PoolSnapshot] = {}
        for name, managed in self._pools.items():
            snapshot = managed.pool.snapshot()
            snapshots[name] = snapshot
            log_event(
                logger,
                f"Pool {name}: active={snapshot.active_count}, completed={snapshot.completed_task_count}, "
                f"queued={snapshot.queue_size}, size={snapshot.pool_size}, "
                f"load={utilization(snapshot):.1%}, queue={queue_occupancy(snapshot):.1%}",
                event="pool_metrics",
                pool=name,
                active=snapshot.active_count,
                size=snapshot.pool_size,
                queued=snapshot.queue_size,
                completed=snapshot.completed_task_count,
                submitted=snapshot.task_count,
            )
        return snapshots

    def start(self) -> None:
        if self._threads:
            return
        self._stop.clear()
        self._threads = [
            self._spawn("pool-adjust", self.adjustment_interval, self.adjust),
            self._spawn("pool-metrics", self.metrics_interval, self.log_metrics),
        ]

    def stop(self) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join()
        self._threads = []

    def _spawn(self, name: str, interval: float, tick: Callable[[], object]) -> threading.Thread:
        thread = threading.Thread(target=self._loop, args=(interval, tick), name=name, daemon=True)
        thread.start()
        return thread

    def _loop(self, interval: float, tick: Callable[[], object]) -> None:
        while not self._stop.wait(interval):
            try:
                tick()
            except Exception:  # noqa: BLE001
                logger.exception("Pool manager tick failed; retrying next interval")
