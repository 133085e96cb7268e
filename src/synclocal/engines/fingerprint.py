"""SHA-256 content fingerprints."""

import hashlib

from .errors import FileOperationError, NotFoundError

DEFAULT_CHUNK_SIZE = 64 * 1024


def hash_file(path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the lowercase hex SHA-256 of the file at ``path``.

    The file is streamed through the digest in ``chunk_size`` blocks.

    Raises:
        NotFoundError: If ``path`` does not exist
        FileOperationError: If the file cannot be opened or read
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as fd:
            for chunk in iter(lambda: fd.read(chunk_size), b""):
                digest.update(chunk)
    except FileNotFoundError as e:
        raise NotFoundError(f"file {str(path)!r} does not exist", detail=str(e), path=str(path))
    except OSError as e:
        raise FileOperationError(f"could not hash file {str(path)!r}", detail=str(e), path=str(path))

    return digest.hexdigest()
