"""Resource factory for creating resource instances by type name."""

from typing import Dict, List, Type

from .base import BaseResource
from .file import FileResource
from .url import UrlResource


class ResourceFactory:
    """Factory for creating resource instances."""

    _resource_classes: Dict[str, Type[BaseResource]] = {
        FileResource.type_name: FileResource,
        UrlResource.type_name: UrlResource,
    }

    @classmethod
    def create_resource(cls, resource_type: str, **kwargs) -> BaseResource:
        """Create a resource instance.

        Args:
            resource_type: Type name (``file``, ``url``)
            **kwargs: Passed to the resource constructor (e.g. ``engine``)

        Raises:
            ValueError: If the resource type is not supported
        """
        if resource_type not in cls._resource_classes:
            raise ValueError(f"Unsupported resource type: {resource_type}")
        return cls._resource_classes[resource_type](**kwargs)

    @classmethod
    def get_resource_class(cls, resource_type: str) -> Type[BaseResource]:
        """Get the class registered for a type name."""
        if resource_type not in cls._resource_classes:
            raise ValueError(f"Unsupported resource type: {resource_type}")
        return cls._resource_classes[resource_type]

    @classmethod
    def get_supported_types(cls) -> List[str]:
        """Get list of supported resource types."""
        return list(cls._resource_classes.keys())

    @classmethod
    def register_resource(cls, resource_type: str, resource_class: Type[BaseResource]):
        """Register a new resource type."""
        cls._resource_classes[resource_type] = resource_class
