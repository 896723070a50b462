"""Domain errors raised by the ledger, auth and sync layers.

Each error carries the HTTP status the API answers with; the single handler
registered in ``app.main`` turns them into ``{"detail": ...}`` responses.
"""
from typing import Dict, Optional

from fastapi import status


class FinanceError(Exception):
    """Base class for every error surfaced to API clients."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(FinanceError):
    """Bad amount or missing required field. Raised before any mutation."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(FinanceError):
    """Referenced debt does not exist in the stated bucket."""
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(FinanceError):
    """A remote-session action was attempted without a valid session."""
    status_code = status.HTTP_401_UNAUTHORIZED

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class RateLimitError(FinanceError):
    """Client exceeded the /api request window."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


class SyncError(FinanceError):
    """Network or remote-store failure during push or pull."""
    status_code = status.HTTP_502_BAD_GATEWAY


class SyncInProgressError(SyncError):
    status_code = status.HTTP_409_CONFLICT


class SyncConflictError(SyncError):
    """The local ledger changed while a sync was in flight; it was kept."""
    status_code = status.HTTP_409_CONFLICT


class SyncTimeoutError(SyncError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
