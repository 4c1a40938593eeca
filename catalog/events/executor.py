import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

logger = logging.getLogger(__name__)


class PoolSaturatedError(RuntimeError):
    """Raised when the pool already holds as many tasks as it can run plus queue."""


class BoundedExecutor:
    """Thread pool whose backlog cannot grow without limit.

    At most ``max_workers`` tasks run at once and at most ``queue_capacity`` more
    wait. A submission beyond that fails immediately with ``PoolSaturatedError``
    instead of blocking the submitter.
    """

    def __init__(self, max_workers: int, queue_capacity: int, thread_name_prefix: str = "observer"):
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)

    def submit(self, fn: Callable, *args) -> Future:
        if not self._slots.acquire(blocking=False):
            raise PoolSaturatedError(
                f"Observer pool saturated ({self.max_workers} running, "
                f"{self.queue_capacity} queued)"
            )
        try:
            future = self._pool.submit(fn, *args)
        except RuntimeError:
            # Pool already shut down.
            self._slots.release()
            raise
        future.add_done_callback(self._release)
        return future

    def _release(self, _future: Future) -> None:
        self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        logger.info("Shutting down observer pool (wait=%s)", wait)
        self._pool.shutdown(wait=wait)
