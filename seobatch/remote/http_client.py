"""HTTP/JSON implementation of the remote collaborators."""

import logging
import os
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
import pydantic
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..exceptions import RemoteCallError, RemoteTimeoutError
from ..utils import get_logger
from .client import EventualReadClient, RemoteResourceClient, ResultKind
from .responses import (
    CreateRecordResponse,
    PatchResponse,
    ReadResponse,
    RecordId,
    RemoteResponse,
    ResearchResponse,
)


logger = get_logger(__name__)

R = TypeVar("R", bound=RemoteResponse)

USER_AGENT = "seobatch/0.1"
RETRY_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Failures after which a request may be sent again without side effects
IDEMPOTENT_RETRY_ERRORS = (httpx.NetworkError, httpx.ConnectTimeout)
# A POST is only re-sent when it never reached the server
CONNECT_RETRY_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)

_READ_PATHS = {
    ResultKind.PRIMARY: "keywords",
    ResultKind.RAW: "keywords-raw",
}


class _RetryableStatus(RemoteCallError):
    """Transient HTTP status, retried before being surfaced."""

    def __init__(self, response: httpx.Response):
        super().__init__(
            f"API Error: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
        self.response = response


class HttpResearchClient(RemoteResourceClient, EventualReadClient):
    """Talks to the dashboard API (tracking records, result reads) and to the
    workflow engine that runs the research action.

    Reads and the status PATCH are retried with exponential backoff on
    transient failures (network errors and HTTP 408/429/5xx). The two POSTs
    create a record or start a pipeline run, so they are only re-sent when the
    connection could not be established. A call that exceeds its read timeout
    is not retried and raises :class:`RemoteTimeoutError`.

    Example:
        >>> client = HttpResearchClient(
        ...     api_url="https://seo.example.com/api",
        ...     workflow_url="https://flows.example.com/webhook",
        ... )
        >>> response = client.read_result(42, ResultKind.RAW)
    """

    def __init__(
        self,
        api_url: str,
        workflow_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        max_retry_delay: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_url: Base URL of the dashboard API (``.../api``)
            workflow_url: Base URL of the workflow webhooks
            api_key: Optional key sent as ``X-API-Key``
            timeout: Default per-request timeout in seconds
            retries: Extra attempts for transient failures
            retry_delay: Base delay of the exponential backoff
            max_retry_delay: Upper bound of a single backoff delay
            transport: Optional httpx transport (used by tests)
        """
        if retries < 0:
            raise ValueError("retries must be >= 0")

        self.api_url = api_url.rstrip("/")
        self.workflow_url = workflow_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key

        self._http = httpx.Client(
            timeout=timeout,
            headers=headers,
            transport=transport,
            follow_redirects=True,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "HttpResearchClient":
        """Build a client from ``SEOBATCH_*`` environment variables.

        Raises:
            ValueError: If a required URL is not set
        """
        api_url = os.getenv("SEOBATCH_API_URL", "").strip()
        workflow_url = os.getenv("SEOBATCH_WORKFLOW_URL", "").strip()
        if not api_url:
            raise ValueError("SEOBATCH_API_URL environment variable is not set")
        if not workflow_url:
            raise ValueError("SEOBATCH_WORKFLOW_URL environment variable is not set")

        timeout = os.getenv("SEOBATCH_TIMEOUT", "").strip()
        if timeout and "timeout" not in kwargs:
            kwargs["timeout"] = float(timeout)

        return cls(
            api_url=api_url,
            workflow_url=workflow_url,
            api_key=os.getenv("SEOBATCH_API_KEY", "").strip() or None,
            **kwargs,
        )

    # RemoteResourceClient

    def create_tracking_record(self, keyword: str, params) -> CreateRecordResponse:
        payload = {
            "client_id": params.client_id,
            "name": f"Keyword Research: {keyword}",
            "main_keyword": keyword,
            "target_country": params.country,
            "target_language": params.language,
        }
        return self._request(
            "POST",
            f"{self.api_url}/projects",
            CreateRecordResponse,
            payload=payload,
            idempotent=False,
        )

    def run_research_action(
        self,
        keyword: str,
        params,
        record_id: RecordId,
        timeout: float
    ) -> ResearchResponse:
        payload = {
            "keyword": keyword,
            "country": params.country,
            "language": params.language,
            "project_id": record_id,
            "client_id": params.client_id,
        }
        return self._request(
            "POST",
            f"{self.workflow_url}/keyword-research",
            ResearchResponse,
            payload=payload,
            timeout=timeout,
            idempotent=False,
        )

    def patch_tracking_record(
        self,
        record_id: RecordId,
        status: str,
        item_count: int
    ) -> PatchResponse:
        payload = {"status": status, "total_keywords_found": item_count}
        return self._request(
            "PATCH", f"{self.api_url}/projects/{record_id}", PatchResponse, payload=payload
        )

    # EventualReadClient

    def read_result(self, record_id: RecordId, kind: ResultKind = ResultKind.PRIMARY) -> ReadResponse:
        path = _READ_PATHS[ResultKind(kind)]
        return self._request("GET", f"{self.api_url}/projects/{record_id}/{path}", ReadResponse)

    # Transport

    def _request(
        self,
        method: str,
        url: str,
        response_model: Type[R],
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        idempotent: bool = True,
    ) -> R:
        """Send a request with retries and decode it into ``response_model``.

        Non-idempotent requests are retried only on connection errors; a
        transient status or a dropped connection is surfaced at once.
        """
        timeout = self.timeout if timeout is None else timeout
        if idempotent:
            retry_on = IDEMPOTENT_RETRY_ERRORS + (_RetryableStatus,)
        else:
            retry_on = CONNECT_RETRY_ERRORS
        retrying = Retrying(
            retry=retry_if_exception_type(retry_on),
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay, max=self.max_retry_delay),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            response = retrying(self._send, method, url, payload, timeout)
        except _RetryableStatus as e:
            # Out of retries; the body may still carry a readable error.
            response = e.response
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(timeout) from e
        except httpx.HTTPError as e:
            raise RemoteCallError(f"Network error: {e}") from e

        return self._decode(response, response_model)

    def _send(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]],
        timeout: float
    ) -> httpx.Response:
        try:
            response = self._http.request(method, url, json=payload, timeout=timeout)
        except httpx.ConnectTimeout:
            raise
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(timeout) from e

        if response.status_code in RETRY_STATUS_CODES:
            raise _RetryableStatus(response)
        return response

    def _decode(self, response: httpx.Response, response_model: Type[R]) -> R:
        """Validate a response body against its response type."""
        status = response.status_code

        if not response.content:
            body: Any = {"success": response.is_success}
        else:
            try:
                body = response.json()
            except ValueError as e:
                raise RemoteCallError(
                    f"Invalid JSON from {response.request.url} (HTTP {status})",
                    status_code=status,
                ) from e

        # The workflow engine sometimes answers with a one-element array
        if isinstance(body, list):
            body = body[0] if body else {"success": False, "error": "Empty array response"}

        if not isinstance(body, dict):
            raise RemoteCallError(
                f"Unexpected response shape from {response.request.url} (HTTP {status})",
                status_code=status,
            )

        try:
            parsed = response_model.model_validate(body)
        except pydantic.ValidationError as e:
            raise RemoteCallError(
                f"Malformed response from {response.request.url}: {e.error_count()} error(s)",
                status_code=status,
            ) from e

        if response.is_error:
            parsed = parsed.model_copy(update={
                "success": False,
                "error": parsed.error or f"API Error: {status} {response.reason_phrase}",
            })
        return parsed

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
