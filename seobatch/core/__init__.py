"""Batch orchestration core."""

from .batch import Batch, submit_batch
from .batch_config import BatchConfig
from .batch_params import SharedParams
from .batch_run import BatchRun
from .job import Job, JobState
from .job_result import JobResult
from .retrying_reader import ReadOutcome, RetryingReader, RetryPolicy
from .status import BatchSnapshot, JobView, StatusAggregator

__all__ = [
    "Batch",
    "submit_batch",
    "BatchConfig",
    "SharedParams",
    "BatchRun",
    "Job",
    "JobState",
    "JobResult",
    "ReadOutcome",
    "RetryingReader",
    "RetryPolicy",
    "BatchSnapshot",
    "JobView",
    "StatusAggregator",
]
