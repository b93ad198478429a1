"""seobatch - bulk keyword research orchestration with bounded concurrency."""

from .core import (
    Batch,
    BatchConfig,
    BatchRun,
    BatchSnapshot,
    Job,
    JobResult,
    JobState,
    ReadOutcome,
    RetryingReader,
    RetryPolicy,
    SharedParams,
    StatusAggregator,
    submit_batch,
)
from .exceptions import (
    RemoteCallError,
    RemoteTimeoutError,
    SeoBatchError,
    StateError,
    ValidationError,
)
from .remote.client import EventualReadClient, RemoteResourceClient, ResultKind
from .remote.http_client import HttpResearchClient

__version__ = "0.1.0"

__all__ = [
    "Batch",
    "submit_batch",
    "BatchConfig",
    "SharedParams",
    "BatchRun",
    "Job",
    "JobState",
    "JobResult",
    "RetryingReader",
    "RetryPolicy",
    "ReadOutcome",
    "BatchSnapshot",
    "StatusAggregator",
    "RemoteResourceClient",
    "EventualReadClient",
    "ResultKind",
    "HttpResearchClient",
    "SeoBatchError",
    "ValidationError",
    "StateError",
    "RemoteCallError",
    "RemoteTimeoutError",
]
