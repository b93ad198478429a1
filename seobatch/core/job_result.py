"""JobResult data model."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..remote.responses import KeywordItem, RecordId
from .job import JobState


@dataclass
class JobResult:
    """Outcome of one job's three-step workflow.

    Attributes:
        job_id: ID of the job this result is for
        keyword: Keyword that was researched
        status: Terminal state (``completed`` or ``error``)
        tracking_record_id: Record created in step 1, if it succeeded
        result_count: Number of research items found
        items: Research items returned by step 2
        error: Error message if the job failed
        patch_failed: Whether the best-effort status write (step 3) failed
    """

    job_id: str
    keyword: str
    status: JobState
    tracking_record_id: Optional[RecordId] = None
    result_count: int = 0
    items: List[KeywordItem] = field(default_factory=list)
    error: Optional[str] = None
    patch_failed: bool = False

    @classmethod
    def completed(
        cls,
        job,
        record_id: RecordId,
        items: List[KeywordItem],
        patch_failed: bool = False
    ) -> "JobResult":
        return cls(
            job_id=job.id,
            keyword=job.keyword,
            status=JobState.COMPLETED,
            tracking_record_id=record_id,
            result_count=len(items),
            items=list(items),
            patch_failed=patch_failed,
        )

    @classmethod
    def failed(cls, job, error: str, record_id: Optional[RecordId] = None) -> "JobResult":
        return cls(
            job_id=job.id,
            keyword=job.keyword,
            status=JobState.ERROR,
            tracking_record_id=record_id,
            error=error,
        )

    @property
    def is_success(self) -> bool:
        """Whether the job completed successfully."""
        return self.status is JobState.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        return {
            "job_id": self.job_id,
            "keyword": self.keyword,
            "status": self.status.value,
            "tracking_record_id": self.tracking_record_id,
            "result_count": self.result_count,
            "items": [item.model_dump() for item in self.items],
            "error": self.error,
            "patch_failed": self.patch_failed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobResult":
        """Deserialize from :meth:`to_dict` output."""
        return cls(
            job_id=data["job_id"],
            keyword=data["keyword"],
            status=JobState(data["status"]),
            tracking_record_id=data.get("tracking_record_id"),
            result_count=data.get("result_count", 0),
            items=[KeywordItem.model_validate(item) for item in data.get("items") or []],
            error=data.get("error"),
            patch_failed=data.get("patch_failed", False),
        )
