"""Local copy engine: keep a destination file identical to a local source."""

import hashlib
import os
import stat
from dataclasses import dataclass
from typing import Optional

from ..utils.logging import log_execution_time
from .base import BaseSyncEngine, LocalSyncTarget, resolve_mode
from .errors import FileOperationError, NotFoundError, SyncError
from .fingerprint import hash_file
from .identity import id_to_file


@dataclass
class CopyResult:
    """Outcome of :meth:`LocalCopyEngine.ensure_copy`."""

    content_sha256: str
    copied: bool
    mode_changed: bool = False

    @property
    def changed(self) -> bool:
        """True if the destination was touched at all."""
        return self.copied or self.mode_changed


class LocalCopyEngine(BaseSyncEngine):
    """Synchronizes a destination file from a local source file."""

    @log_execution_time
    def ensure_copy(self, target: LocalSyncTarget) -> CopyResult:
        """Make the destination match the source, copying only when needed.

        When the fingerprints already match no bytes are copied and only the
        permission bits are reconciled.

        Raises:
            InvalidModeError: If ``file_mode`` is not octal (before any I/O)
            NotFoundError: If the source does not exist
            FileOperationError: If reading, copying or chmod fails
        """
        mode = resolve_mode(target.file_mode)
        source_hash = hash_file(target.source, self.chunk_size)

        try:
            dest_hash = hash_file(target.destination, self.chunk_size)
        except SyncError:
            dest_hash = None

        if dest_hash == source_hash:
            mode_changed = self.ensure_mode(target, mode)
            self.logger.info(
                "Destination already up to date",
                source=target.source,
                destination=target.destination,
                content_sha256=source_hash,
                mode_changed=mode_changed
            )
            return CopyResult(content_sha256=source_hash, copied=False, mode_changed=mode_changed)

        copied_hash = self.copy_file(target.source, target.destination, mode)
        self.logger.info(
            "Destination copied from source",
            source=target.source,
            destination=target.destination,
            content_sha256=copied_hash,
            previous_sha256=dest_hash
        )
        return CopyResult(content_sha256=copied_hash, copied=True)

    def ensure_mode(self, target: LocalSyncTarget, mode: Optional[int] = None) -> bool:
        """Bring the destination's permission bits in line with the desired mode.

        The desired mode is ``mode``, else ``target.file_mode``, else the
        source's current mode.

        Returns:
            True if the destination was chmod-ed
        """
        if mode is None:
            mode = resolve_mode(target.file_mode)

        try:
            dest_stat = os.stat(target.destination)
        except OSError as e:
            raise FileOperationError(
                f"could not stat destination {target.destination!r}",
                detail=str(e),
                path=target.destination
            )

        if mode is None:
            try:
                mode = stat.S_IMODE(os.stat(target.source).st_mode)
            except OSError as e:
                raise FileOperationError(
                    f"could not stat source {target.source!r}",
                    detail=str(e),
                    path=target.source
                )

        current = stat.S_IMODE(dest_stat.st_mode)
        if current == mode:
            return False

        try:
            os.chmod(target.destination, mode)
        except OSError as e:
            raise FileOperationError(
                f"failed to chmod {mode:04o} {target.destination!r}",
                detail=str(e),
                path=target.destination
            )

        self.logger.info(
            "Destination mode changed",
            destination=target.destination,
            old_mode=f"{current:04o}",
            new_mode=f"{mode:04o}"
        )
        return True

    def copy_file(self, source: str, destination: str, mode: Optional[int] = None) -> str:
        """Stream ``source`` into a truncated ``destination``.

        ``mode`` defaults to the source's permission bits. The destination is
        removed again if anything goes wrong while writing.

        Returns:
            SHA-256 hex digest of the bytes written
        """
        try:
            src = open(source, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"source file {source!r} does not exist", detail=str(e), path=source)
        except OSError as e:
            raise FileOperationError(f"could not open source file {source!r}", detail=str(e), path=source)

        with src:
            if mode is None:
                try:
                    mode = stat.S_IMODE(os.fstat(src.fileno()).st_mode)
                except OSError as e:
                    raise FileOperationError(f"could not stat source file {source!r}", detail=str(e), path=source)

            try:
                fd = os.open(destination, os.O_CREAT | os.O_TRUNC | os.O_WRONLY | getattr(os, "O_BINARY", 0), mode)
            except OSError as e:
                raise FileOperationError(
                    f"could not create destination file {destination!r}",
                    detail=str(e),
                    path=destination
                )

            digest = hashlib.sha256()
            completed = False
            try:
                with os.fdopen(fd, "wb") as dest:
                    for chunk in iter(lambda: src.read(self.chunk_size), b""):
                        digest.update(chunk)
                        dest.write(chunk)
                completed = True
            except OSError as e:
                raise FileOperationError(
                    f"error copying {source!r} => {destination!r}",
                    detail=str(e),
                    path=destination
                )
            finally:
                if not completed:
                    self._discard(destination)

        # O_CREAT applies the umask and leaves existing files' modes alone
        try:
            os.chmod(destination, mode)
        except OSError as e:
            raise FileOperationError(
                f"failed to chmod {mode:04o} {destination!r}",
                detail=str(e),
                path=destination
            )

        return digest.hexdigest()

    def has_drift(self, target: LocalSyncTarget) -> bool:
        """True when the destination is missing or its bytes differ from the source.

        Raises:
            NotFoundError: If the source does not exist
        """
        source_hash = hash_file(target.source, self.chunk_size)
        try:
            dest_hash = hash_file(target.destination, self.chunk_size)
        except NotFoundError:
            return True
        return source_hash != dest_hash

    def read(self, identity: str) -> Optional[str]:
        """Fingerprint the resource's backing file, or None if it is gone."""
        path = id_to_file(identity)
        try:
            return hash_file(path, self.chunk_size)
        except NotFoundError:
            self.logger.info("Backing file no longer exists", path=path)
            return None
