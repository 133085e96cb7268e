"""Base sync engine and the data types shared by both engines."""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..config.schema import parse_octal_mode
from ..utils.logging import get_logger
from .errors import FileOperationError, InvalidModeError
from .identity import id_to_file


@dataclass(frozen=True)
class LocalSyncTarget:
    """A destination kept in sync with a local source file."""

    source: str
    destination: str
    file_mode: Optional[str] = None


@dataclass(frozen=True)
class RemoteSyncTarget:
    """A destination kept in sync with an HTTP(S) resource."""

    url: str
    filename: str
    headers: Dict[str, str] = field(default_factory=dict)
    file_mode: Optional[str] = None


@dataclass(frozen=True)
class CachedMetadata:
    """Cache validators remembered from the last successful download."""

    etag: Optional[str] = None
    last_modified: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.etag and not self.last_modified


def resolve_mode(file_mode: Optional[str]) -> Optional[int]:
    """Parse an optional octal mode string.

    Raises:
        InvalidModeError: If ``file_mode`` is set but not octal
    """
    if file_mode is None or file_mode == "":
        return None
    try:
        return parse_octal_mode(file_mode)
    except ValueError as e:
        raise InvalidModeError("file_mode is not a valid octal number", detail=str(e))


class BaseSyncEngine:
    """Behavior common to the local copy and remote fetch engines."""

    def __init__(self, chunk_size: int = 64 * 1024):
        self.chunk_size = chunk_size
        self.logger = get_logger(self.__class__.__name__)

    def delete(self, identity: str) -> bool:
        """Remove the backing file of a resource.

        A file that is already gone counts as deleted.

        Returns:
            True if a file was removed, False if there was nothing to remove
        """
        path = id_to_file(identity)
        try:
            os.stat(path)
        except FileNotFoundError:
            self.logger.info("Backing file already absent", path=path)
            return False
        except OSError as e:
            raise FileOperationError(f"could not stat file {path!r}", detail=str(e), path=path)

        try:
            os.remove(path)
        except OSError as e:
            raise FileOperationError(f"could not remove file {path!r}", detail=str(e), path=path)

        self.logger.info("Backing file removed", path=path)
        return True

    def _discard(self, path: str) -> None:
        """Remove a partially written destination."""
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning("Could not remove partial file", path=path, error=str(e))
