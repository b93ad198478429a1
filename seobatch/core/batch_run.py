"""Batch run execution management."""

import threading
import time
import uuid
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from datetime import datetime
from typing import Deque, Dict, List, Optional

from ..exceptions import StateError
from ..remote.client import RemoteResourceClient
from ..utils import get_logger
from .batch_config import BatchConfig
from .job import Job, JobState
from .job_executor import JobExecutor
from .job_result import JobResult
from .status import BatchSnapshot, StatusAggregator


logger = get_logger(__name__)


class BatchRun:
    """Runs the jobs of a batch on a bounded worker pool.

    Up to ``max_concurrent`` workers pull jobs from a FIFO queue and run each
    one through :class:`JobExecutor`. The queue and the cancellation flag are
    the only state shared between workers; both are only touched under the
    run lock, together with the ``pending -> processing`` transition, so a
    job is dequeued at most once and snapshots never see a half-dequeued job.

    Cancellation is cooperative: :meth:`cancel` only stops workers from
    dequeuing further jobs. Jobs already dispatched run to completion and
    their outcome is recorded. A failing job never stops the batch.

    Example:
        >>> run = BatchRun(config, client)
        >>> run.start()
        >>> run.wait()
        >>> print(run.snapshot().completed)
    """

    def __init__(self, config: BatchConfig, client: RemoteResourceClient):
        """Initialize batch run.

        Args:
            config: Batch configuration (validated here)
            client: Remote API client shared by all workers

        Raises:
            ValidationError: If the configuration cannot be run
            StateError: If a job was already picked up by another run
        """
        config.validate()
        started = [job.id for job in config.jobs if job.state is not JobState.PENDING]
        if started:
            raise StateError(f"Jobs already processed by another run: {', '.join(started)}")

        self.config = config
        self.client = client
        self.batch_id = f"batch-run-{uuid.uuid4().hex[:8]}"
        self.jobs: List[Job] = list(config.jobs)
        self.executor = JobExecutor(
            client,
            config.params,
            research_timeout=config.research_timeout,
            record_status=config.record_status,
        )

        self._queue: Deque[Job] = deque()
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self._results: Dict[str, JobResult] = {}
        self._failed: Dict[str, str] = {}

        self._started = False
        self._workers: List[Future] = []
        self._active_workers = 0
        self._last_progress_time: float = 0.0
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    def start(self) -> None:
        """Start processing in background worker threads and return immediately.

        Raises:
            RuntimeError: If the run was already started
        """
        with self._lock:
            if self._started:
                raise RuntimeError("Batch run already started")
            self._started = True
            self.start_time = datetime.now()
            self._queue.extend(self.jobs)
            worker_count = min(self.config.max_concurrent, len(self.jobs))
            self._active_workers = worker_count

        pool = ThreadPoolExecutor(
            max_workers=worker_count,
            thread_name_prefix=self.batch_id,
        )
        self._workers = [pool.submit(self._worker_loop, index) for index in range(worker_count)]
        # No further submissions; worker threads exit once their loops return.
        pool.shutdown(wait=False)

        logger.info(
            f"Started batch run {self.batch_id}: {len(self.jobs)} jobs, {worker_count} workers"
        )

    def _next_job(self) -> Optional[Job]:
        """Dequeue the next job and mark it processing, or None if the worker should stop."""
        with self._lock:
            if self._cancel_event.is_set() or not self._queue:
                return None
            job = self._queue.popleft()
            job.mark_processing()
            return job

    def _worker_loop(self, worker_index: int) -> None:
        """Pull and execute jobs until the queue is empty or the run is cancelled."""
        try:
            while True:
                job = self._next_job()
                if job is None:
                    break

                logger.debug(f"Worker {worker_index} picked job {job.id} '{job.keyword}'")
                result = self._execute(job)
                self._record(job, result)

                if not result.is_success:
                    self._notify_error(job, result.error)
                self._report_progress()
        finally:
            self._worker_finished(worker_index)

    def _execute(self, job: Job) -> JobResult:
        try:
            return self.executor.execute(job)
        except Exception as e:
            logger.exception(f"Executor raised for job {job.id}")
            return JobResult.failed(job, str(e) or e.__class__.__name__)

    def _record(self, job: Job, result: JobResult) -> None:
        with self._lock:
            job.finish(result)
            if result.is_success:
                self._results[job.id] = result
            else:
                self._failed[job.id] = result.error or "Unknown error"

    def _worker_finished(self, worker_index: int) -> None:
        with self._lock:
            self._active_workers -= 1
            last_worker = self._active_workers == 0
            if last_worker:
                self.end_time = datetime.now()

        logger.debug(f"Worker {worker_index} stopped")
        if last_worker:
            snapshot = self.snapshot()
            logger.info(
                f"Batch run {self.batch_id} finished: {snapshot.completed} completed, "
                f"{snapshot.error} failed, {snapshot.pending} not started"
            )
            self._report_progress(force=True)

    def _notify_error(self, job: Job, error: Optional[str]) -> None:
        if not self.config.on_error:
            return
        try:
            self.config.on_error(job, error or "Unknown error")
        except Exception as e:
            logger.warning(f"on_error callback failed for job {job.id}: {e}")

    def _report_progress(self, force: bool = False) -> None:
        callback = self.config.progress_callback
        if not callback:
            return

        now = time.monotonic()
        with self._lock:
            if not force and now - self._last_progress_time < self.config.progress_interval:
                return
            self._last_progress_time = now

        elapsed = (datetime.now() - self.start_time).total_seconds()
        try:
            callback(self.snapshot(), elapsed)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def cancel(self) -> None:
        """Stop dequeuing new jobs. In-flight jobs run to completion."""
        if not self._cancel_event.is_set():
            self._cancel_event.set()
            logger.info(f"Batch run {self.batch_id} cancelled")

    @property
    def is_cancelled(self) -> bool:
        """Whether :meth:`cancel` was called."""
        return self._cancel_event.is_set()

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_complete(self) -> bool:
        """Whether the run was started and every worker has stopped."""
        return self._started and all(worker.done() for worker in self._workers)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for all workers to stop.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if the run is complete, False if the timeout elapsed first
        """
        if not self._started:
            raise RuntimeError("Batch run not started")

        _, not_done = wait_futures(self._workers, timeout=timeout)
        return not not_done

    def snapshot(self) -> BatchSnapshot:
        """Get a consistent point-in-time view of all jobs."""
        with self._lock:
            return StatusAggregator.snapshot(self.jobs, cancelled=self._cancel_event.is_set())

    def status(self, print_status: bool = False) -> Dict:
        """Get current execution statistics.

        Args:
            print_status: If True, print status to console

        Returns:
            Dictionary with status information
        """
        snapshot = self.snapshot()
        stats = snapshot.to_dict()
        stats.pop("jobs")
        stats["batch_id"] = self.batch_id

        if print_status:
            print(f"\nBatch Run Status ({self.batch_id}):")
            print(f"  Total jobs: {stats['total']}")
            print(f"  Pending: {stats['pending']}")
            print(f"  Processing: {stats['processing']}")
            print(f"  Completed: {stats['completed']}")
            print(f"  Failed: {stats['error']}")
            print(f"  Keywords found: {stats['total_result_count']}")
            if stats["cancelled"]:
                print("  Cancelled: True")
            print(f"  Complete: {stats['is_complete']}")

        return stats

    def results(self) -> Dict[str, JobResult]:
        """Get results of completed jobs, keyed by job ID."""
        with self._lock:
            return dict(self._results)

    def get_failed_jobs(self) -> Dict[str, str]:
        """Get failed jobs with error messages, keyed by job ID."""
        with self._lock:
            return dict(self._failed)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Cancel the run and optionally wait for in-flight jobs.

        Args:
            wait: If True, wait for in-flight jobs to finish
            timeout: Maximum time to wait in seconds
        """
        self.cancel()
        if wait and self._started:
            self.wait(timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)

    def __repr__(self) -> str:
        return f"BatchRun(id={self.batch_id}, jobs={len(self.jobs)}, max_concurrent={self.config.max_concurrent})"
