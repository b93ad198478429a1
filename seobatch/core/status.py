"""Batch status projection."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..remote.responses import RecordId
from ..utils import get_logger
from .job import Job, JobState


logger = get_logger(__name__)


@dataclass(frozen=True)
class JobView:
    """Immutable copy of one job's reportable fields."""

    id: str
    keyword: str
    state: JobState
    tracking_record_id: Optional[RecordId] = None
    result_count: Optional[int] = None
    error_message: Optional[str] = None

    @classmethod
    def of(cls, job: Job) -> "JobView":
        return cls(
            id=job.id,
            keyword=job.keyword,
            state=job.state,
            tracking_record_id=job.tracking_record_id,
            result_count=job.result_count,
            error_message=job.error_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "state": self.state.value if isinstance(self.state, JobState) else self.state,
            "tracking_record_id": self.tracking_record_id,
            "result_count": self.result_count,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class BatchSnapshot:
    """Point-in-time view of a batch run.

    Attributes:
        pending: Jobs not dequeued yet
        processing: Jobs currently executing
        completed: Jobs that succeeded
        error: Jobs that failed
        total: Number of jobs in the batch
        total_result_count: Sum of result counts over completed jobs
        cancelled: Whether the run was cancelled
        is_complete: No job is processing, and no job is pending unless cancelled
        jobs: Per-job views in submission order
    """

    pending: int = 0
    processing: int = 0
    completed: int = 0
    error: int = 0
    total: int = 0
    total_result_count: int = 0
    cancelled: bool = False
    is_complete: bool = False
    jobs: List[JobView] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pending": self.pending,
            "processing": self.processing,
            "completed": self.completed,
            "error": self.error,
            "total": self.total,
            "total_result_count": self.total_result_count,
            "cancelled": self.cancelled,
            "is_complete": self.is_complete,
            "jobs": [view.to_dict() for view in self.jobs],
        }


class StatusAggregator:
    """Read-only projection over a batch's jobs.

    Counts are recomputed from each job's current state on every call, so
    there is no separate counter to drift. The aggregator never mutates jobs
    and never raises on unexpected data: a job's current state is taken as
    authoritative.
    """

    @staticmethod
    def snapshot(jobs: Iterable[Job], cancelled: bool = False) -> BatchSnapshot:
        """Compute a snapshot of ``jobs``.

        Callers that share ``jobs`` with running workers should pass a copy
        taken under their lock.
        """
        counts = {state: 0 for state in JobState}
        total_result_count = 0
        views = []

        for job in jobs:
            view = JobView.of(job)
            views.append(view)

            try:
                state = JobState(view.state)
            except ValueError:
                logger.debug(f"Job {view.id} has unknown state {view.state!r}, not counted")
                continue

            counts[state] += 1
            if state is JobState.COMPLETED:
                total_result_count += view.result_count or 0

        pending = counts[JobState.PENDING]
        processing = counts[JobState.PROCESSING]

        return BatchSnapshot(
            pending=pending,
            processing=processing,
            completed=counts[JobState.COMPLETED],
            error=counts[JobState.ERROR],
            total=len(views),
            total_result_count=total_result_count,
            cancelled=cancelled,
            is_complete=processing == 0 and (pending == 0 or cancelled),
            jobs=views,
        )
