from __future__ import annotations

import logging

import pytest

from news_relay.pools.pool import WorkerPool


@pytest.fixture
def io_pool():
    pool = WorkerPool("io", core_size=4, max_size=8, queue_capacity=20, keep_alive=1.0)
    yield pool
    pool.shutdown(grace=5.0)


@pytest.fixture
def cpu_pool():
    pool = WorkerPool("cpu", core_size=2, max_size=2, queue_capacity=10, keep_alive=1.0)
    yield pool
    pool.shutdown(grace=5.0)


@pytest.fixture(autouse=True)
def _restore_package_logger():
    logger = logging.getLogger("news_relay")
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.propagate = propagate
    logger.setLevel(level)
