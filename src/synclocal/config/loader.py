"""Manifest loader for JSON/YAML files."""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from pydantic import ValidationError

from .schema import ManifestConfig, ResourceType
from ..utils.logging import get_logger


DEFAULT_MANIFEST_FILES = (
    "./synclocal.yaml",
    "./synclocal.yml",
    "./synclocal.json",
)


class ConfigurationError(Exception):
    """Raised when manifest loading fails."""
    pass


class ConfigLoader:
    """Loads and validates resource manifests."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> ManifestConfig:
        """Load a manifest from a JSON or YAML file.

        Args:
            file_path: Path to manifest file

        Returns:
            Validated ManifestConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")

        self.logger.info("Loading manifest from file", file_path=str(file_path))

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        config = self.load_from_dict(data or {})
        self.logger.info(
            "Manifest loaded successfully",
            resources_count=len(config.resources)
        )
        return config

    def load_from_dict(self, data: Dict[str, Any]) -> ManifestConfig:
        """Load a manifest from a dictionary.

        Args:
            data: Manifest data as dictionary

        Returns:
            Validated ManifestConfig object
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Manifest must be a mapping at the top level")

        try:
            return ManifestConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid manifest: {e}") from e

    def validate_config(self, config: ManifestConfig) -> List[str]:
        """Validate a manifest and return a list of warnings.

        Args:
            config: Manifest to validate

        Returns:
            List of validation warnings
        """
        warnings = []

        destinations: Dict[str, str] = {}
        for resource in config.resources:
            target = resource.destination if resource.type == ResourceType.FILE.value else resource.filename
            path = os.path.abspath(target)
            if path in destinations:
                warnings.append(
                    f"Resources '{destinations[path]}' and '{resource.name}' write the same file: {target}"
                )
            else:
                destinations[path] = resource.name

        for resource in config.get_resources_by_type(ResourceType.FILE):
            if os.path.abspath(resource.source) == os.path.abspath(resource.destination):
                warnings.append(f"Resource '{resource.name}' copies a file onto itself: {resource.source}")

        for resource in config.get_resources_by_type(ResourceType.URL):
            if resource.url.startswith("http://") and any(k.lower() == "authorization" for k in resource.headers):
                warnings.append(f"Resource '{resource.name}' sends an Authorization header over plain http")

        if warnings:
            self.logger.warning("Manifest validation warnings", warnings=warnings)
        else:
            self.logger.info("Manifest validation passed")

        return warnings


def find_config_file() -> Optional[str]:
    """Locate the manifest file.

    Looks in this order:
    1. SYNCLOCAL_CONFIG_FILE environment variable
    2. ./synclocal.yaml, ./synclocal.yml, ./synclocal.json
    """
    logger = get_logger("find_config_file")

    config_file = os.getenv("SYNCLOCAL_CONFIG_FILE")
    if config_file:
        if os.path.exists(config_file):
            return config_file
        logger.warning("Specified config file not found", file=config_file)

    for file_path in DEFAULT_MANIFEST_FILES:
        if os.path.exists(file_path):
            logger.info("Found configuration file", file=file_path)
            return file_path

    return None
