"""Batch builder."""

from typing import Callable, Iterable, List, Optional, Union

from ..exceptions import StateError, ValidationError
from ..remote.client import RemoteResourceClient
from ..utils import dedupe_keywords, parse_keywords
from .batch_config import MAX_BULK_KEYWORDS, MAX_CONCURRENT_REQUESTS, BatchConfig
from .batch_params import DEFAULT_COUNTRY, SharedParams
from .job import Job


class Batch:
    """Builder for a bulk keyword research batch.

    Keywords are validated when added: blank keywords are rejected (or
    skipped in bulk), duplicates are dropped, and the batch can never grow
    beyond ``max_jobs``. Nothing remote happens until :meth:`run`.

    Example:
        >>> run = (
        ...     Batch(client, max_concurrent=3)
        ...     .set_params(client_id=7, country="TR")
        ...     .add_keywords(["shoes", "sneakers", "running shoes"])
        ...     .run()
        ... )
        >>> run.wait()
    """

    def __init__(
        self,
        client: RemoteResourceClient,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
        max_jobs: int = MAX_BULK_KEYWORDS
    ):
        """Initialize batch configuration.

        Args:
            client: Remote API client used by the run
            max_concurrent: Maximum jobs processed at the same time
            max_jobs: Maximum number of keywords in the batch
        """
        self.client = client
        self.config = BatchConfig(max_concurrent=max_concurrent, max_jobs=max_jobs)
        self._run: Optional["BatchRun"] = None

    @property
    def jobs(self) -> List[Job]:
        return self.config.jobs

    def set_params(
        self,
        client_id: int,
        country: str = DEFAULT_COUNTRY,
        language: Optional[str] = None
    ) -> "Batch":
        """Set the parameters shared by every job.

        Args:
            client_id: Client the tracking records belong to
            country: Target country code
            language: Target language (derived from country when omitted)

        Returns:
            Self for chaining
        """
        self.config.params = SharedParams(client_id=client_id, country=country, language=language)
        return self

    def set_research_timeout(self, seconds: float) -> "Batch":
        """Set the per-job research action timeout."""
        if seconds <= 0:
            raise ValidationError("Research timeout must be positive")
        self.config.research_timeout = seconds
        return self

    def on_progress(self, callback: Callable, interval: float = 3.0) -> "Batch":
        """Set progress callback.

        The callback receives the current :class:`BatchSnapshot` and the
        elapsed seconds. It is called at most once per ``interval`` while
        jobs finish, and once more when the run ends.

        Example:
            >>> batch.on_progress(lambda snap, t: print(f"{snap.completed}/{snap.total} after {t:.0f}s"))
        """
        self.config.progress_callback = callback
        self.config.progress_interval = interval
        return self

    def on_error(self, callback: Callable[[Job, str], None]) -> "Batch":
        """Set a callback invoked with (job, error message) for each failed job."""
        self.config.on_error = callback
        return self

    def add_job(self, keyword: str) -> "Batch":
        """Add a single keyword.

        Raises:
            ValidationError: If the keyword is blank, already added, or the batch is full
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValidationError("Keyword must not be empty")
        if keyword in self._keywords():
            raise ValidationError(f"Keyword already in batch: {keyword}")
        self._check_capacity(1)

        self.config.jobs.append(Job(keyword=keyword))
        return self

    def add_keywords(self, keywords: Union[str, Iterable[str]]) -> "Batch":
        """Add many keywords at once.

        Accepts an iterable of keywords or a newline/comma separated string.
        Blank entries are skipped and duplicates are dropped (keeping the
        first occurrence). The whole call is rejected if it would exceed
        ``max_jobs``.

        Raises:
            ValidationError: If the batch would exceed ``max_jobs``
        """
        if isinstance(keywords, str):
            candidates = parse_keywords(keywords)
        else:
            candidates = dedupe_keywords(keywords)

        existing = self._keywords()
        new_keywords = [keyword for keyword in candidates if keyword not in existing]
        self._check_capacity(len(new_keywords))

        self.config.jobs.extend(Job(keyword=keyword) for keyword in new_keywords)
        return self

    def _keywords(self) -> set:
        return {job.keyword for job in self.config.jobs}

    def _check_capacity(self, extra: int) -> None:
        total = len(self.config.jobs) + extra
        if total > self.config.max_jobs:
            raise ValidationError(
                f"Batch would have {total} keywords, the limit is {self.config.max_jobs}"
            )

    def run(self, wait: bool = False) -> "BatchRun":
        """Execute the batch.

        Args:
            wait: If True, block until all jobs finish

        Returns:
            Started BatchRun, usable as a handle (cancel, snapshot, wait)

        Raises:
            ValidationError: If no keywords were added or params are missing
            StateError: If the batch was already run
        """
        from .batch_run import BatchRun

        if self._run is not None:
            raise StateError(f"Batch already run as {self._run.batch_id}")

        run = BatchRun(self.config, self.client)
        run.start()
        self._run = run

        if wait:
            run.wait()

        return run

    def __len__(self) -> int:
        return len(self.config.jobs)

    def __repr__(self) -> str:
        return (
            f"Batch(jobs={len(self.config.jobs)}, "
            f"max_concurrent={self.config.max_concurrent}, "
            f"max_jobs={self.config.max_jobs})"
        )


def submit_batch(
    keywords: Union[str, Iterable[str]],
    params: SharedParams,
    client: RemoteResourceClient,
    max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    max_jobs: int = MAX_BULK_KEYWORDS,
    research_timeout: Optional[float] = None,
    progress_callback: Optional[Callable] = None,
    on_error: Optional[Callable[[Job, str], None]] = None
) -> "BatchRun":
    """Validate ``keywords`` and start a batch run without blocking.

    Args:
        keywords: Keywords (iterable or newline/comma separated string)
        params: Parameters shared by every job
        client: Remote API client
        max_concurrent: Maximum jobs processed at the same time
        max_jobs: Maximum number of keywords
        research_timeout: Optional research action timeout override
        progress_callback: Optional progress callback (snapshot, elapsed)
        on_error: Optional callback for failed jobs

    Returns:
        Started BatchRun handle

    Raises:
        ValidationError: If no valid keyword remains or the limit is exceeded
    """
    batch = Batch(client, max_concurrent=max_concurrent, max_jobs=max_jobs)
    batch.config.params = params
    batch.add_keywords(keywords)

    if research_timeout is not None:
        batch.set_research_timeout(research_timeout)
    if progress_callback is not None:
        batch.on_progress(progress_callback)
    if on_error is not None:
        batch.on_error(on_error)

    return batch.run()
