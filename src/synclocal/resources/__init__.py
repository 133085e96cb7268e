"""Managed resource types."""

from .base import BaseResource
from .file import FileResource
from .url import UrlResource
from .factory import ResourceFactory

__all__ = [
    "BaseResource",
    "FileResource",
    "UrlResource",
    "ResourceFactory"
]
