"""Single-job research workflow."""

from typing import Optional

from ..exceptions import RemoteTimeoutError
from ..remote.client import RemoteResourceClient
from ..remote.responses import RecordId
from ..utils import get_logger
from .batch_config import DISCOVERED_STATUS, RESEARCH_TIMEOUT_SECONDS
from .batch_params import SharedParams
from .job import Job
from .job_result import JobResult


logger = get_logger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create tracking record"
RESEARCH_FAILED_MESSAGE = "Keyword research failed"
NO_RESULTS_MESSAGE = "No keywords found"


class JobExecutor:
    """Runs the three-step remote workflow for one job.

    1. CreateTrackingRecord
    2. RunResearchAction (long timeout)
    3. PatchTrackingRecord (best effort)

    Each step runs only if the previous one succeeded. Every failure of steps
    1-2 is converted into an ``error`` result; a failure of step 3 is logged
    and the job still completes. :meth:`execute` does not raise for remote
    failures, so a worker can never be taken down by one job.
    """

    def __init__(
        self,
        client: RemoteResourceClient,
        params: SharedParams,
        research_timeout: float = RESEARCH_TIMEOUT_SECONDS,
        record_status: str = DISCOVERED_STATUS
    ):
        """Initialize executor.

        Args:
            client: Remote API client
            params: Parameters shared by all jobs of the batch
            research_timeout: Timeout in seconds for the research action
            record_status: Status label written in step 3
        """
        self.client = client
        self.params = params
        self.research_timeout = research_timeout
        self.record_status = record_status

    def execute(self, job: Job) -> JobResult:
        """Execute the workflow for ``job``.

        Args:
            job: Job being processed (owned by the calling worker)

        Returns:
            Terminal JobResult
        """
        record_id: Optional[RecordId] = None

        try:
            created = self.client.create_tracking_record(job.keyword, self.params)
            record_id = created.record_id
            if not created.ok or record_id is None:
                return self._fail(job, created.error_text(CREATE_FAILED_MESSAGE))

            logger.debug(f"Job {job.id}: created tracking record {record_id}")

            research = self.client.run_research_action(
                job.keyword, self.params, record_id, timeout=self.research_timeout
            )
            if not research.ok:
                return self._fail(job, research.error_text(RESEARCH_FAILED_MESSAGE), record_id)
            if not research.keywords:
                return self._fail(job, research.error_text(NO_RESULTS_MESSAGE), record_id)

        except RemoteTimeoutError as e:
            if record_id is None:
                return self._fail(job, str(e))
            return self._fail(job, f"Research timed out after {e.timeout:g}s", record_id)
        except Exception as e:
            logger.exception(f"Job {job.id}: unexpected failure")
            return self._fail(job, str(e) or e.__class__.__name__, record_id)

        items = research.keywords
        patch_failed = not self._patch_record(job, record_id, len(items))

        logger.info(f"Job {job.id} '{job.keyword}' completed with {len(items)} keywords")
        return JobResult.completed(job, record_id, items, patch_failed=patch_failed)

    def _patch_record(self, job: Job, record_id: RecordId, item_count: int) -> bool:
        """Write the status onto the record. Returns False if the write failed."""
        try:
            patched = self.client.patch_tracking_record(record_id, self.record_status, item_count)
        except Exception as e:
            logger.warning(f"Job {job.id}: failed to update record {record_id} status: {e}")
            return False

        if not patched.ok:
            logger.warning(
                f"Job {job.id}: record {record_id} status update rejected: "
                f"{patched.error_text('unknown error')}"
            )
            return False
        return True

    def _fail(self, job: Job, message: str, record_id: Optional[RecordId] = None) -> JobResult:
        logger.info(f"Job {job.id} '{job.keyword}' failed: {message}")
        return JobResult.failed(job, message, record_id)
