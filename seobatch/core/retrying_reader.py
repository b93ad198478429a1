"""Retry policy for reads of eventually consistent results.

The research pipeline writes its results after the triggering call returns,
so a read right after a successful write may find nothing yet. Reads are
retried a fixed number of times with a fixed delay, and an empty result after
the last attempt is returned as-is: callers must treat it as inconclusive,
not as proof that no results exist.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple, Optional, TypeVar

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ..exceptions import RemoteCallError
from ..remote.client import EventualReadClient, ResultKind
from ..remote.responses import ReadResponse, RecordId
from ..utils import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


def has_items(response: Any) -> bool:
    """Default readiness check: the read succeeded and returned items."""
    if response is None or not getattr(response, "success", False):
        return False
    return len(getattr(response, "items", None) or []) > 0


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-attempt, fixed-delay retry policy.

    Attributes:
        max_attempts: Maximum number of reads (including the first)
        delay: Seconds to wait between reads
        is_ready: Predicate telling present data apart from "not produced yet"
    """

    max_attempts: int
    delay: float
    is_ready: Callable[[Any], bool] = has_items

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")


PRIMARY_READ_POLICY = RetryPolicy(max_attempts=5, delay=1.5)
RAW_READ_POLICY = RetryPolicy(max_attempts=3, delay=1.5)


class ReadOutcome(NamedTuple):
    """Result of a retried read.

    ``ready`` is False when attempts ran out; ``result`` then holds the last
    read (possibly empty or None).
    """

    result: Any
    attempts: int
    ready: bool


class RetryingReader:
    """Reads results that may not exist yet, retrying per :class:`RetryPolicy`.

    Example:
        >>> reader = RetryingReader(client)
        >>> outcome = reader.read_primary(record_id)
        >>> if not outcome.ready:
        ...     print("still processing, or no results")
    """

    def __init__(
        self,
        client: Optional[EventualReadClient] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the reader.

        Args:
            client: Read client used by :meth:`read_primary` and :meth:`read_raw`
            sleep: Function used to wait between attempts
        """
        self.client = client
        self._sleep = sleep

    def read_with_retry(self, query: Callable[[], T], policy: RetryPolicy) -> ReadOutcome:
        """Call ``query`` until ``policy.is_ready`` accepts its result.

        Issues at most ``policy.max_attempts`` calls, strictly one after the
        other. A :class:`RemoteCallError` raised by ``query`` counts as an
        absent (``None``) result. Exhausting the attempts is not an error.

        Args:
            query: Zero-argument read function
            policy: Retry policy to apply

        Returns:
            ReadOutcome with the ready (or last) result and the attempts used
        """
        attempts = 0

        def attempt():
            nonlocal attempts
            attempts += 1
            try:
                return query()
            except RemoteCallError as e:
                logger.debug(f"Read attempt {attempts} failed: {e}")
                return None

        def log_retry(retry_state):
            logger.debug(
                f"Result not ready, retrying in {policy.delay:g}s "
                f"(attempt {retry_state.attempt_number}/{policy.max_attempts})"
            )

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_fixed(policy.delay),
            retry=retry_if_result(lambda result: not policy.is_ready(result)),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=log_retry,
            sleep=self._sleep,
        )
        result = retrying(attempt)
        ready = policy.is_ready(result)

        if not ready:
            logger.info(f"Result still not ready after {attempts} attempt(s)")
        return ReadOutcome(result=result, attempts=attempts, ready=ready)

    def read_primary(
        self,
        record_id: RecordId,
        policy: RetryPolicy = PRIMARY_READ_POLICY
    ) -> ReadOutcome:
        """Read the filtered keyword list of a tracking record."""
        return self._read(record_id, ResultKind.PRIMARY, policy)

    def read_raw(
        self,
        record_id: RecordId,
        policy: RetryPolicy = RAW_READ_POLICY
    ) -> ReadOutcome:
        """Read the unfiltered keyword list of a tracking record."""
        return self._read(record_id, ResultKind.RAW, policy)

    def _read(self, record_id: RecordId, kind: ResultKind, policy: RetryPolicy) -> ReadOutcome:
        if self.client is None:
            raise ValueError("RetryingReader needs a client to read tracking records")

        def query() -> ReadResponse:
            return self.client.read_result(record_id, kind)

        return self.read_with_retry(query, policy)
