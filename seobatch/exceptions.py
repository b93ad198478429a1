"""Exception hierarchy for seobatch."""

from typing import Optional


class SeoBatchError(Exception):
    """Base exception for all seobatch errors."""


class ValidationError(SeoBatchError):
    """Raised when batch input is rejected before any job is created."""


class StateError(SeoBatchError):
    """Raised on an illegal job transition or misuse of a batch run."""


class RemoteCallError(SeoBatchError):
    """Raised when a remote call fails at the transport or parsing level.

    Attributes:
        status_code: HTTP status code, if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteTimeoutError(RemoteCallError):
    """Raised when a remote call exceeds its timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"Request timed out after {timeout:g}s")
        self.timeout = timeout
