"""BatchConfig data model."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..exceptions import ValidationError
from .batch_params import SharedParams
from .job import Job


MAX_CONCURRENT_REQUESTS = 3
MAX_BULK_KEYWORDS = 100
RESEARCH_TIMEOUT_SECONDS = 300.0
DISCOVERED_STATUS = "keywords_discovered"


@dataclass
class BatchConfig:
    """Configuration for one batch run.

    Attributes:
        params: Parameters shared by all jobs
        max_concurrent: Maximum jobs processed at the same time
        max_jobs: Upper bound on the number of jobs in the batch
        research_timeout: Timeout in seconds for the research action
        record_status: Status label written to tracking records on success
        progress_callback: Optional callback receiving (snapshot, elapsed seconds)
        progress_interval: Minimum seconds between progress callbacks
        on_error: Optional callback receiving (job, error message) for failed jobs
        jobs: Jobs to process, in queue order
    """

    params: Optional[SharedParams] = None
    max_concurrent: int = MAX_CONCURRENT_REQUESTS
    max_jobs: int = MAX_BULK_KEYWORDS
    research_timeout: float = RESEARCH_TIMEOUT_SECONDS
    record_status: str = DISCOVERED_STATUS
    progress_callback: Optional[Callable] = None
    progress_interval: float = 3.0
    on_error: Optional[Callable[[Job, str], None]] = None
    jobs: List[Job] = field(default_factory=list)

    def __post_init__(self):
        """Validate limits."""
        if self.max_concurrent < 1:
            raise ValidationError("max_concurrent must be at least 1")
        if self.max_jobs < 1:
            raise ValidationError("max_jobs must be at least 1")
        if self.research_timeout <= 0:
            raise ValidationError("research_timeout must be positive")

    def validate(self) -> None:
        """Check that the configuration can be run.

        Raises:
            ValidationError: If params are missing or the job list is empty or too large
        """
        if self.params is None:
            raise ValidationError("Shared params must be set before running")
        if not self.jobs:
            raise ValidationError("No jobs added to batch")
        if len(self.jobs) > self.max_jobs:
            raise ValidationError(
                f"Batch has {len(self.jobs)} jobs, the limit is {self.max_jobs}"
            )
