"""Error taxonomy shared by the sync engines.

Every failure an engine can surface is a :class:`SyncError`. The lifecycle
driver turns them into structured diagnostics (severity, summary, detail)
with :meth:`SyncError.to_diagnostics`; nothing is retried internally.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class Severity(str, Enum):
    """Diagnostic severity."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic reported back to the lifecycle driver."""

    severity: Severity
    summary: str
    detail: str = ""


class SyncError(Exception):
    """Base exception for sync engine errors."""

    def __init__(
        self,
        summary: str,
        detail: str = "",
        path: Optional[str] = None,
        warnings: Optional[List[Diagnostic]] = None
    ):
        super().__init__(summary)
        self.summary = summary
        self.detail = detail
        self.path = path
        self.warnings: List[Diagnostic] = list(warnings or [])

    def __str__(self) -> str:
        if self.detail:
            return f"{self.summary}: {self.detail}"
        return self.summary

    def to_diagnostics(self) -> List[Diagnostic]:
        """Warnings first, then the error itself."""
        return self.warnings + [
            Diagnostic(severity=Severity.ERROR, summary=self.summary, detail=self.detail)
        ]


class NotFoundError(SyncError):
    """Raised when a source or backing file does not exist."""
    pass


class InvalidModeError(SyncError):
    """Raised when ``file_mode`` is not a valid octal number."""
    pass


class FileOperationError(SyncError):
    """Raised when an open/stat/chmod/copy/remove call fails."""
    pass


class InvalidIdentityError(SyncError):
    """Raised when a resource identity is not a ``file://`` URI."""
    pass


class TransportError(SyncError):
    """Raised when the remote server cannot be reached."""
    pass


class UnsupportedOperationError(SyncError):
    """Raised when a resource type cannot perform a lifecycle operation."""
    pass


class ResponseError(SyncError):
    """Raised when the server answers with a status we cannot use."""

    def __init__(
        self,
        summary: str,
        status: int,
        reason: str = "",
        content_type: str = "",
        detail: str = "",
        warnings: Optional[List[Diagnostic]] = None
    ):
        super().__init__(summary, detail=detail, warnings=warnings)
        self.status = status
        self.reason = reason
        self.content_type = content_type

    @property
    def status_line(self) -> str:
        """Status code and reason phrase, e.g. ``404 Not Found``."""
        return f"{self.status} {self.reason}".strip()


class AuthRequiredError(ResponseError):
    """HTTP 401: the URL needs credentials that were not supplied."""
    pass


class AuthRejectedError(ResponseError):
    """HTTP 403: the supplied credentials were rejected."""
    pass


class UnexpectedResponseError(ResponseError):
    """Any status other than 200, 304, 401 and 403."""
    pass
