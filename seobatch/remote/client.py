"""Interfaces of the remote collaborators used by the batch core."""

from abc import ABC, abstractmethod
from enum import Enum

from .responses import (
    CreateRecordResponse,
    PatchResponse,
    ReadResponse,
    RecordId,
    ResearchResponse,
)


class ResultKind(str, Enum):
    """Which result set of a tracking record to read."""

    PRIMARY = "primary"  # filtered keyword list
    RAW = "raw"  # unfiltered keywords as gathered


class RemoteResourceClient(ABC):
    """Remote API that owns tracking records and runs the research action.

    Implementations return a typed response for every call. A non-success
    envelope is returned as a response with ``success=False``; transport
    failures raise :class:`~seobatch.exceptions.RemoteCallError`.
    """

    @abstractmethod
    def create_tracking_record(self, keyword: str, params) -> CreateRecordResponse:
        """Create the tracking record for one keyword.

        Args:
            keyword: Keyword being researched
            params: SharedParams of the batch

        Returns:
            Response carrying the new record id on success
        """
        pass

    @abstractmethod
    def run_research_action(
        self,
        keyword: str,
        params,
        record_id: RecordId,
        timeout: float
    ) -> ResearchResponse:
        """Run the research pipeline for one keyword.

        Args:
            keyword: Keyword being researched
            params: SharedParams of the batch
            record_id: Tracking record created for this keyword
            timeout: Per-call timeout in seconds

        Returns:
            Response carrying the discovered keyword items

        Raises:
            RemoteTimeoutError: If the call exceeds ``timeout``
        """
        pass

    @abstractmethod
    def patch_tracking_record(
        self,
        record_id: RecordId,
        status: str,
        item_count: int
    ) -> PatchResponse:
        """Write the status label and item count onto a tracking record."""
        pass


class EventualReadClient(ABC):
    """Remote API that serves results written asynchronously by the pipeline."""

    @abstractmethod
    def read_result(self, record_id: RecordId, kind: ResultKind = ResultKind.PRIMARY) -> ReadResponse:
        """Read a result set of a tracking record.

        May legitimately return an empty item list when the pipeline has not
        written its results yet.
        """
        pass
