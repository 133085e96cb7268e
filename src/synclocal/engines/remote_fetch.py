"""Remote fetch engine: keep a destination file in sync with an HTTP(S) URL.

Requests are conditional. The entity tag remembered from the previous
download is sent as ``If-None-Match``; failing that the remembered
``Last-Modified`` value is sent as ``If-Modified-Since``. A ``304`` leaves
everything untouched, a ``200`` streams the body to disk while hashing it.
"""

import asyncio
import hashlib
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import aiohttp
from multidict import CIMultiDict

from ..config.settings import HttpSettings, get_settings
from ..utils.logging import log_async_execution_time
from .base import BaseSyncEngine, CachedMetadata, RemoteSyncTarget, resolve_mode
from .errors import (
    AuthRejectedError,
    AuthRequiredError,
    Diagnostic,
    FileOperationError,
    ResponseError,
    Severity,
    TransportError,
    UnexpectedResponseError,
)
from .identity import id_to_file
from .media_type import is_textual

DEFAULT_FILE_MODE = "0664"


class FetchOutcome(str, Enum):
    """What a conditional GET did."""
    FETCHED = "fetched"
    NOT_MODIFIED = "not_modified"


@dataclass
class FetchResult:
    """Outcome of :meth:`RemoteFetchEngine.fetch`."""

    outcome: FetchOutcome
    metadata: CachedMetadata = field(default_factory=CachedMetadata)
    content_sha256: Optional[str] = None  # only set when the body was fetched
    bytes_written: int = 0

    @property
    def changed(self) -> bool:
        return self.outcome == FetchOutcome.FETCHED


@dataclass
class ProbeResult:
    """Outcome of :meth:`RemoteFetchEngine.probe`."""

    status: int
    changed: bool
    metadata: CachedMetadata = field(default_factory=CachedMetadata)


class RemoteFetchEngine(BaseSyncEngine):
    """Synchronizes a destination file from an HTTP(S) resource."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        default_file_mode: str = DEFAULT_FILE_MODE,
        timeout_seconds: Optional[float] = None,
        chunk_size: int = 64 * 1024,
        user_agent: Optional[str] = None,
        verify_ssl: bool = True
    ):
        """Initialize the engine.

        Args:
            session: Session to use; the engine creates (and owns) one if omitted
            default_file_mode: Mode for downloads without an explicit ``file_mode``
            timeout_seconds: Total request timeout, None for no timeout
            chunk_size: Read size while streaming the response body
            user_agent: ``User-Agent`` header for sessions the engine creates
            verify_ssl: Verify TLS certificates for sessions the engine creates
        """
        super().__init__(chunk_size=chunk_size)
        self.session = session
        self._owns_session = session is None
        self.default_mode = resolve_mode(default_file_mode)
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl

    @classmethod
    def from_settings(
        cls,
        http_settings: Optional[HttpSettings] = None,
        session: Optional[aiohttp.ClientSession] = None
    ) -> "RemoteFetchEngine":
        """Build an engine from the ``HTTP_*`` settings."""
        http_settings = http_settings or get_settings().http
        return cls(
            session=session,
            default_file_mode=http_settings.default_file_mode,
            timeout_seconds=http_settings.timeout_seconds,
            chunk_size=http_settings.chunk_size,
            user_agent=http_settings.user_agent,
            verify_ssl=http_settings.verify_ssl
        )

    async def __aenter__(self):
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this engine created it."""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = None if self.verify_ssl else aiohttp.TCPConnector(ssl=False)
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
            self._owns_session = True
        return self.session

    def build_headers(self, target: RemoteSyncTarget, cached: Optional[CachedMetadata] = None) -> CIMultiDict:
        """Custom headers plus at most one conditional header.

        The entity tag wins over the last-modified timestamp when both are known.
        """
        cached = cached or CachedMetadata()
        headers = CIMultiDict()
        for key, value in target.headers.items():
            headers[key] = value

        if cached.etag:
            headers["If-None-Match"] = cached.etag
        elif cached.last_modified:
            headers["If-Modified-Since"] = cached.last_modified
        return headers

    @log_async_execution_time
    async def fetch(self, target: RemoteSyncTarget, cached: Optional[CachedMetadata] = None) -> FetchResult:
        """Conditionally download ``target.url`` into ``target.filename``.

        Raises:
            InvalidModeError: If ``file_mode`` is not octal (before any I/O)
            AuthRequiredError: On HTTP 401
            AuthRejectedError: On HTTP 403
            UnexpectedResponseError: On any other status but 200 and 304
            TransportError: If the server cannot be reached
            FileOperationError: If the destination cannot be written
        """
        cached = cached or CachedMetadata()
        mode = resolve_mode(target.file_mode)
        if mode is None:
            mode = self.default_mode

        session = await self._get_session()
        headers = self.build_headers(target, cached)

        self.logger.info(
            "Requesting remote file",
            url=target.url,
            filename=target.filename,
            if_none_match=headers.get("If-None-Match"),
            if_modified_since=headers.get("If-Modified-Since")
        )

        try:
            async with session.get(target.url, headers=headers) as response:
                if response.status == 304:
                    self.logger.info("Remote file not modified", url=target.url, filename=target.filename)
                    return FetchResult(outcome=FetchOutcome.NOT_MODIFIED, metadata=cached)

                if response.status != 200:
                    raise await self._response_error(response)

                metadata = CachedMetadata(
                    etag=response.headers.get("ETag"),
                    last_modified=response.headers.get("Last-Modified")
                )
                content_sha256, size = await self._write_body(response, target.filename, mode)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"error making request to {target.url!r}", detail=str(e) or type(e).__name__)

        self.logger.info(
            "Remote file downloaded",
            url=target.url,
            filename=target.filename,
            content_sha256=content_sha256,
            bytes_written=size,
            etag=metadata.etag,
            last_modified=metadata.last_modified
        )
        return FetchResult(
            outcome=FetchOutcome.FETCHED,
            metadata=metadata,
            content_sha256=content_sha256,
            bytes_written=size
        )

    async def probe(self, target: RemoteSyncTarget, cached: Optional[CachedMetadata] = None) -> ProbeResult:
        """Ask the server (HEAD) whether the remote content changed, without downloading it."""
        cached = cached or CachedMetadata()
        session = await self._get_session()
        headers = self.build_headers(target, cached)

        try:
            async with session.head(target.url, headers=headers, allow_redirects=True) as response:
                if response.status == 304:
                    return ProbeResult(status=304, changed=False, metadata=cached)
                if response.status != 200:
                    raise await self._response_error(response)

                metadata = CachedMetadata(
                    etag=response.headers.get("ETag"),
                    last_modified=response.headers.get("Last-Modified")
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"error making request to {target.url!r}", detail=str(e) or type(e).__name__)

        # servers that ignore conditional headers still answer 200
        unchanged = bool(cached.etag) and metadata.etag == cached.etag
        return ProbeResult(status=200, changed=not unchanged, metadata=metadata)

    def read(self, identity: str) -> bool:
        """True if the backing file still exists. Never touches the network."""
        path = id_to_file(identity)
        try:
            os.stat(path)
        except FileNotFoundError:
            self.logger.info("Backing file no longer exists", path=path)
            return False
        except OSError as e:
            raise FileOperationError(f"could not stat file {path!r}", detail=str(e), path=path)
        return True

    async def _write_body(self, response: aiohttp.ClientResponse, filename: str, mode: int) -> Tuple[str, int]:
        """Stream the response body into ``filename``, hashing as it goes."""
        try:
            fd = os.open(filename, os.O_CREAT | os.O_TRUNC | os.O_WRONLY | getattr(os, "O_BINARY", 0), mode)
        except OSError as e:
            raise FileOperationError(f"could not create destination file {filename!r}", detail=str(e), path=filename)

        digest = hashlib.sha256()
        size = 0
        completed = False
        try:
            with os.fdopen(fd, "wb") as dest:
                async for chunk in response.content.iter_chunked(self.chunk_size):
                    digest.update(chunk)
                    dest.write(chunk)
                    size += len(chunk)
            completed = True
        # ClientOSError and TimeoutError are OSErrors too, so check them first
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"error reading request body into {filename!r}",
                detail=str(e) or type(e).__name__,
                path=filename
            )
        except OSError as e:
            raise FileOperationError(f"error reading request body into {filename!r}", detail=str(e), path=filename)
        finally:
            if not completed:
                self._discard(filename)

        try:
            os.chmod(filename, mode)
        except OSError as e:
            raise FileOperationError(f"failed to chmod {mode:04o} {filename!r}", detail=str(e), path=filename)

        return digest.hexdigest(), size

    async def _response_error(self, response: aiohttp.ClientResponse) -> ResponseError:
        """Classify a non-200/304 response.

        A textual body is attached as detail. If reading it fails, a warning is
        recorded and the status error is still the one reported.
        """
        content_type = response.headers.get("Content-Type", "")
        detail = ""
        warnings = []
        if is_textual(content_type):
            try:
                body = await response.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                warnings.append(Diagnostic(
                    severity=Severity.WARNING,
                    summary="could not read response body",
                    detail=str(e) or type(e).__name__
                ))
            else:
                try:
                    detail = body.decode(response.charset or "utf-8", errors="replace")
                except LookupError:
                    detail = body.decode("utf-8", errors="replace")

        status = response.status
        reason = response.reason or ""
        kwargs = dict(status=status, reason=reason, content_type=content_type, detail=detail, warnings=warnings)

        self.logger.warning("Remote server refused request", url=str(response.url), status=status)

        if status == 401:
            return AuthRequiredError(
                "this url requires authorization and the request was not authorized. "
                "You may need to add an Authorization header to this resource",
                **kwargs
            )
        if status == 403:
            return AuthRejectedError(
                "the server rejected your auth credentials (403 forbidden). "
                "They may be expired or you may not be allowed to download this anymore",
                **kwargs
            )
        return UnexpectedResponseError(
            f"the server returned an unexpected response code: {status} {reason}".rstrip(),
            **kwargs
        )
