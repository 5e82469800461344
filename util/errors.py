# util/errors.py
from typing import Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=http_status, detail=message, headers=headers)


class PipelineError(Exception):
    """Base for failures raised by the extraction/verification pipeline."""


class ConfigurationError(PipelineError):
    """A required credential is missing. Fatal for the run, never retried."""


class RateLimitError(PipelineError):
    """
    External quota exceeded. Retryable; aborts only the current unit of work.
    `retry_after` is the backend's hint in seconds, when it sent one.
    """

    def __init__(self, message: str = "rate limited", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class TransportError(PipelineError):
    """Network failure or non-2xx response other than a rate limit."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(PipelineError):
    """Model output could not be decoded into the expected shape."""
