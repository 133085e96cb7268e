"""Conditional sync engines and the identity/fingerprint substrate they share."""

from .errors import (
    Severity,
    Diagnostic,
    SyncError,
    NotFoundError,
    InvalidModeError,
    FileOperationError,
    InvalidIdentityError,
    TransportError,
    UnsupportedOperationError,
    ResponseError,
    AuthRequiredError,
    AuthRejectedError,
    UnexpectedResponseError
)

from .identity import file_to_id, id_to_file
from .fingerprint import hash_file
from .media_type import normalize_media_type, is_textual
from .base import BaseSyncEngine, LocalSyncTarget, RemoteSyncTarget, CachedMetadata, resolve_mode
from .local_copy import LocalCopyEngine, CopyResult
from .remote_fetch import RemoteFetchEngine, FetchResult, FetchOutcome, ProbeResult

__all__ = [
    # Errors
    "Severity",
    "Diagnostic",
    "SyncError",
    "NotFoundError",
    "InvalidModeError",
    "FileOperationError",
    "InvalidIdentityError",
    "TransportError",
    "UnsupportedOperationError",
    "ResponseError",
    "AuthRequiredError",
    "AuthRejectedError",
    "UnexpectedResponseError",

    # Identity and fingerprints
    "file_to_id",
    "id_to_file",
    "hash_file",
    "normalize_media_type",
    "is_textual",

    # Engines
    "BaseSyncEngine",
    "LocalSyncTarget",
    "RemoteSyncTarget",
    "CachedMetadata",
    "resolve_mode",
    "LocalCopyEngine",
    "CopyResult",
    "RemoteFetchEngine",
    "FetchResult",
    "FetchOutcome",
    "ProbeResult"
]
