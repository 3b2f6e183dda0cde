"""Background job execution.

Responsibilities:
- Run job ids on a bounded worker pool.
- Guarantee at most one active run per job id.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable


class JobQueue:
    """Thread-pool backed queue of job runs keyed by job id."""

    def __init__(self, runner: Callable[[str], object], max_workers: int = 4) -> None:
        """Initialize the worker pool around a `runner(job_id)` callable."""

        if max_workers <= 0:
            raise ValueError("`max_workers` must be a positive integer.")
        self._runner = runner
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="leveltext-job"
        )
        self._futures: dict[str, Future[object]] = {}
        self._lock = Lock()

    def submit(self, job_id: str) -> bool:
        """Schedule a run for `job_id`; return `False` when one is already active."""

        with self._lock:
            existing = self._futures.get(job_id)
            if existing is not None and not existing.done():
                return False
            future = self._executor.submit(self._runner, job_id)
            self._futures[job_id] = future
        return True

    def is_active(self, job_id: str) -> bool:
        """Return whether a run for `job_id` is queued or executing."""

        with self._lock:
            future = self._futures.get(job_id)
            return future is not None and not future.done()

    def wait(self, job_id: str, timeout: float | None = None) -> None:
        """Block until the latest run of `job_id` finishes.

        Errors raised by the runner propagate to the caller.
        """

        with self._lock:
            future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting runs and optionally wait for active ones."""

        self._executor.shutdown(wait=wait)
