"""
Worker pools.

Resizable thread pools shared by every stage of a cycle, helpers that
bound each task by a timeout, and the adaptive pool manager.
"""

from .pool import PoolSnapshot, WorkerPool, create_pools
from .tasks import combine, submit_with_timeout, with_timeout
from .adaptive import AdaptivePoolManager, ManagedPool, ScalingPolicy, build_policies, plan_resize

__all__ = [
    "WorkerPool",
    "PoolSnapshot",
    "create_pools",
    "with_timeout",
    "submit_with_timeout",
    "combine",
    "AdaptivePoolManager",
    "ManagedPool",
    "ScalingPolicy",
    "build_policies",
    "plan_resize",
]
