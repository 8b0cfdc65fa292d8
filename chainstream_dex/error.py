"""Error types for the ChainStream DEX client."""

from dataclasses import dataclass
from typing import Optional


class DexError(Exception):
    """Base exception for client errors."""

    pass


class HttpError(DexError):
    """HTTP/network error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"HTTP error: {message}")


class UnexpectedStatusError(DexError):
    """Unexpected HTTP status code."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Unexpected status {status}: {message}")


class DeserializeError(DexError):
    """JSON deserialization error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Deserialization error: {message}")


class JobFailedError(DexError):
    """The server reported a job as failed."""

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        self.message = message
        super().__init__(f"Job {job_id} failed: {message}")


class JobTimeoutError(DexError):
    """A job did not complete in time."""

    def __init__(self, job_id: str, timeout: float):
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(f"Job {job_id} timed out after {timeout}s")


@dataclass
class ErrorResponse:
    """Error response format from the API."""

    status: Optional[str] = None
    message: Optional[str] = None
    details: Optional[str] = None

    def get_message(self) -> str:
        """Get the error message, preferring message over details."""
        return self.message or self.details or "Unknown error"

    @classmethod
    def from_dict(cls, data: dict) -> "ErrorResponse":
        """Create from dictionary."""
        return cls(
            status=data.get("status"),
            message=data.get("message") or data.get("error"),
            details=data.get("details"),
        )
