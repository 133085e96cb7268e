"""Conversion between destination paths and resource identities.

A resource identity is the destination's absolute path serialized as a
``file://`` URI with an empty authority. It is what the state store keeps
to find the file again.
"""

import os
from urllib.parse import quote, unquote, urlsplit

from .errors import InvalidIdentityError


LOCAL_HOSTS = ("", "localhost")


def file_to_id(path) -> str:
    """Encode ``path`` as ``file://<absolute-slash-path>``."""
    try:
        absolute = os.path.abspath(os.fspath(path))
    except (TypeError, ValueError, OSError) as e:
        raise InvalidIdentityError(f"could not resolve absolute path for {path!r}", detail=str(e))

    slash_path = absolute.replace(os.sep, "/")
    if not slash_path.startswith("/"):
        # drive-letter paths: file:///C:/...
        slash_path = "/" + slash_path
    # leading "//" stays in the path: file:////host/share
    return "file://" + quote(slash_path)


def id_to_file(identity: str) -> str:
    """Decode a resource identity back into an absolute OS-native path."""
    try:
        parts = urlsplit(identity)
    except ValueError as e:
        raise InvalidIdentityError(f"invalid id format {identity!r}", detail=str(e))

    if parts.scheme != "file":
        raise InvalidIdentityError(f"invalid id scheme {parts.scheme!r}, should be 'file'")
    if parts.netloc not in LOCAL_HOSTS:
        raise InvalidIdentityError(f"invalid id host {parts.netloc!r}, should be empty or 'localhost'")
    if not parts.path:
        raise InvalidIdentityError(f"invalid id format {identity!r}: missing path")

    path = unquote(parts.path)
    if os.sep != "/":
        if path[:1] == "/" and path[2:3] == ":":
            path = path[1:]
        path = path.replace("/", os.sep)
    return os.path.abspath(path)
