"""Application error hierarchy.

Each error is an HTTPException so that routes and services can raise it
directly; the handler in app.main renders it as ``{"error": detail}``.
"""

from fastapi import HTTPException


class AppError(HTTPException):
    status_code: int = 500

    def __init__(self, detail: str = "Internal error"):
        super().__init__(status_code=self.status_code, detail=detail)


class BadRequestError(AppError):
    status_code = 400


class ValidationError(BadRequestError):
    """A required input field is missing or malformed."""


class NotFoundError(AppError):
    status_code = 404


class UpstreamFetchError(AppError):
    """An AI engine could not produce an answer (HTTP error, transport error, timeout).

    ``upstream_status`` carries the engine's HTTP status when there was one;
    rate limits and gateway errors are worth retrying.
    """

    status_code = 502
    retryable_statuses = frozenset({429, 502, 503, 529})

    def __init__(self, detail: str = "Upstream fetch failed", upstream_status: int | None = None):
        super().__init__(detail)
        self.upstream_status = upstream_status

    @property
    def retryable(self) -> bool:
        return self.upstream_status in self.retryable_statuses


class PersistenceError(AppError):
    """A database write failed; the current poll is aborted."""

    status_code = 500
