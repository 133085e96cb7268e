"""Configuration package for synclocal.

The manifest loader lives in :mod:`synclocal.config.loader`; it is not
re-exported here because it depends on the logging utilities, which in turn
read the settings defined in this package.
"""

from .settings import (
    LoggingSettings,
    HttpSettings,
    StateSettings,
    AppSettings,
    get_settings
)

from .schema import (
    ResourceType,
    FileResourceConfig,
    UrlResourceConfig,
    ResourceConfig,
    ManifestConfig,
    parse_octal_mode
)

__all__ = [
    "LoggingSettings",
    "HttpSettings",
    "StateSettings",
    "AppSettings",
    "get_settings",

    "ResourceType",
    "FileResourceConfig",
    "UrlResourceConfig",
    "ResourceConfig",
    "ManifestConfig",
    "parse_octal_mode"
]
