"""Job data model."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..exceptions import StateError
from ..remote.responses import RecordId

if TYPE_CHECKING:
    from .job_result import JobResult


class JobState(str, Enum):
    """Lifecycle state of a job.

    ``pending -> processing -> completed | error``; the last two are terminal.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.ERROR)


def new_job_id() -> str:
    return f"job-{uuid.uuid4().hex[:8]}"


@dataclass
class Job:
    """One keyword's research workflow within a batch.

    A job is mutated only by the worker that dequeued it, and only through
    :meth:`mark_processing` and :meth:`finish`, which enforce the one-way
    state machine.

    Attributes:
        keyword: Keyword to research (stripped, non-empty)
        id: Unique identifier for the job
        state: Current lifecycle state
        tracking_record_id: Remote record created for this job
        result_count: Number of research items found (set on success)
        error_message: Failure reason (set on error)
        started_at: When a worker dequeued the job
        finished_at: When the job reached a terminal state
    """

    keyword: str
    id: str = field(default_factory=new_job_id)
    state: JobState = JobState.PENDING
    tracking_record_id: Optional[RecordId] = None
    result_count: Optional[int] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate job configuration."""
        if not isinstance(self.keyword, str) or not self.keyword.strip():
            raise ValueError("Keyword must be a non-empty string")
        self.keyword = self.keyword.strip()
        self.state = JobState(self.state)

    @property
    def is_terminal(self) -> bool:
        """Whether the job has completed or failed."""
        return self.state.is_terminal

    def mark_processing(self) -> None:
        """Move the job from ``pending`` to ``processing``.

        Raises:
            StateError: If the job is not pending
        """
        if self.state is not JobState.PENDING:
            raise StateError(f"Job {self.id} cannot start from state '{self.state.value}'")
        self.state = JobState.PROCESSING
        self.started_at = datetime.now()

    def finish(self, result: "JobResult") -> None:
        """Apply a terminal result produced by the executor.

        Raises:
            StateError: If the job is not processing or the result is not terminal
        """
        if self.state is not JobState.PROCESSING:
            raise StateError(f"Job {self.id} cannot finish from state '{self.state.value}'")
        if not result.status.is_terminal:
            raise StateError(f"Result for job {self.id} is not terminal: '{result.status.value}'")

        self.state = result.status
        self.tracking_record_id = result.tracking_record_id
        if result.is_success:
            self.result_count = result.result_count
            self.error_message = None
        else:
            self.error_message = result.error
        self.finished_at = datetime.now()
