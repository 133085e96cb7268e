"""Configuration schema definitions for sync resources."""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from enum import Enum
from urllib.parse import urlsplit
from pydantic import BaseModel, Field, field_validator


class ResourceType(str, Enum):
    """Supported resource types."""
    FILE = "file"
    URL = "url"


def parse_octal_mode(value: str) -> int:
    """Parse an octal permission string such as ``"644"``, ``"0644"`` or ``"0o644"``.

    Raises:
        ValueError: If ``value`` is not an octal number or exceeds ``0o7777``
    """
    text = str(value).strip()
    if text[:2].lower() == "0o":
        text = text[2:]
    if not text or any(c not in "01234567" for c in text):
        raise ValueError(f"{value!r} is not a valid octal number")

    mode = int(text, 8)
    if mode > 0o7777:
        raise ValueError(f"{value!r} is out of range for a file mode")
    return mode


class _ResourceConfigBase(BaseModel):
    """Fields shared by every resource block."""

    name: str = Field(..., min_length=1, description="Resource name, unique within a manifest")
    file_mode: Optional[str] = Field(
        None,
        description="File mode for the destination (octal string)"
    )

    @field_validator("file_mode")
    @classmethod
    def validate_file_mode(cls, v):
        if v is not None:
            parse_octal_mode(v)
        return v

    def inputs(self) -> Dict[str, Any]:
        """Caller-supplied fields, as stored alongside the resource state."""
        return self.model_dump(exclude={"name", "type"})


class FileResourceConfig(_ResourceConfigBase):
    """Copy a local source file to a destination path."""

    type: Literal["file"] = "file"
    source: str = Field(..., min_length=1, description="Source file path")
    destination: str = Field(..., min_length=1, description="Destination file path")


class UrlResourceConfig(_ResourceConfigBase):
    """Download an HTTP(S) URL to a destination path."""

    type: Literal["url"] = "url"
    url: str = Field(..., description="Source URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Additional request headers")
    filename: str = Field(..., min_length=1, description="Destination file path")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"url must be an absolute http(s) URL, got {v!r}")
        return v


ResourceConfig = Annotated[
    Union[FileResourceConfig, UrlResourceConfig],
    Field(discriminator="type")
]


class ManifestConfig(BaseModel):
    """Root configuration: the set of resources to keep in sync."""

    version: str = Field(default="1", description="Manifest format version")
    resources: List[ResourceConfig] = Field(default_factory=list)

    @field_validator("resources")
    @classmethod
    def validate_unique_names(cls, v):
        seen = set()
        for resource in v:
            if resource.name in seen:
                raise ValueError(f"duplicate resource name: {resource.name!r}")
            seen.add(resource.name)
        return v

    def get_resource(self, name: str) -> Optional[Union[FileResourceConfig, UrlResourceConfig]]:
        """Get a resource block by name."""
        for resource in self.resources:
            if resource.name == name:
                return resource
        return None

    def get_resources_by_type(self, resource_type: ResourceType) -> List[Union[FileResourceConfig, UrlResourceConfig]]:
        """Get all resource blocks of one type."""
        return [r for r in self.resources if r.type == resource_type.value]
