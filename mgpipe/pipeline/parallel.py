"""
Parallel Execution Management for the mgPipe Pipeline

The modeling engine processes samples on a pool of worker processes. This
module owns that pool: it rejects requests for the sequential mode (which the
pipeline does not support), checks that process-based parallelism works in
the current runtime, and creates the pool once so repeated pipeline runs in
the same process share it.
"""

import atexit
import logging
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Callable, Optional

from mgpipe.pipeline.errors import CapabilityMissingError, SequentialModeUnsupportedError

logger = logging.getLogger(__name__)

MIN_PARALLEL_WORKERS = 2


def process_pool_available() -> bool:
    """
    Check whether process-based parallel execution is usable.

    ProcessPoolExecutor needs working named semaphores, which some platforms
    (and sandboxed interpreters) lack. Importing `multiprocessing.synchronize`
    fails in that case.
    """
    try:
        import multiprocessing.synchronize  # noqa: F401
    except ImportError:
        return False
    return True


def check_parallel_request(num_workers: int):
    """
    Reject worker counts that would require sequential execution.

    Raises:
        SequentialModeUnsupportedError: If `num_workers` is 1 or less.
    """
    if num_workers < MIN_PARALLEL_WORKERS:
        raise SequentialModeUnsupportedError(
            "You disabled parallel mode to enable sequential one. Sequential mode is not available "
            f"for this application. Please specify a higher number of workers (got num_workers={num_workers}).")


class WorkerPool:
    """Handle to a pool of worker processes used by the modeling engine."""

    def __init__(self, executor: Executor, num_workers: int):
        self.executor = executor
        self.num_workers = num_workers
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn, *args, **kwargs):
        return self.executor.submit(fn, *args, **kwargs)

    def map(self, fn, *iterables, **kwargs):
        return self.executor.map(fn, *iterables, **kwargs)

    def shutdown(self, wait: bool = True):
        if not self._closed:
            self.executor.shutdown(wait=wait)
            self._closed = True

    def __repr__(self):
        state = "closed" if self._closed else "active"
        return f"WorkerPool(num_workers={self.num_workers}, {state})"


class ParallelExecutionManager:
    """
    Creates the worker pool on first use and hands out the same pool afterwards.

    Args:
        pool_factory: Callable taking the worker count and returning an
            `Executor`. Defaults to `ProcessPoolExecutor`.
        capability_check: Callable returning True when parallel execution is
            available. Defaults to `process_pool_available`.
    """

    def __init__(self, pool_factory: Optional[Callable[[int], Executor]] = None,
                 capability_check: Optional[Callable[[], bool]] = None):
        self._pool_factory = pool_factory or (lambda n: ProcessPoolExecutor(max_workers=n))
        self._capability_check = capability_check or process_pool_available
        self._pool: Optional[WorkerPool] = None

    @property
    def pool(self) -> Optional[WorkerPool]:
        return self._pool if self.is_active() else None

    def is_active(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def ensure_pool(self, num_workers: int) -> WorkerPool:
        """
        Return the active worker pool, creating it if necessary.

        Raises:
            SequentialModeUnsupportedError: If `num_workers` is 1 or less.
            CapabilityMissingError: If process-based parallelism is unavailable.
        """
        check_parallel_request(num_workers)
        if not self._capability_check():
            raise CapabilityMissingError(
                "Sequential mode not available for this application and process-based "
                "parallel execution is not supported by this Python runtime.")

        if self.is_active():
            if self._pool.num_workers != num_workers:
                logger.info(f"Reusing existing worker pool with {self._pool.num_workers} workers "
                            f"(requested {num_workers}).")
            return self._pool

        logger.info(f"Starting worker pool with {num_workers} workers.")
        self._pool = WorkerPool(self._pool_factory(num_workers), num_workers)
        return self._pool

    acquire = ensure_pool

    def release(self, wait: bool = True):
        """Shut down the active pool, if any."""
        if self._pool is not None:
            logger.info("Shutting down worker pool.")
            self._pool.shutdown(wait=wait)
            self._pool = None


_default_manager: Optional[ParallelExecutionManager] = None


def get_default_manager() -> ParallelExecutionManager:
    """Process-wide manager, shut down at interpreter exit."""
    global _default_manager
    if _default_manager is None:
        _default_manager = ParallelExecutionManager()
        atexit.register(_default_manager.release)
    return _default_manager
