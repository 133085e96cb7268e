"""Application configuration settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings

from .. import __version__


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file_path: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LOG_"


class HttpSettings(BaseSettings):
    """HTTP transport configuration for URL resources."""

    default_file_mode: str = Field(default="0664")
    timeout_seconds: Optional[float] = Field(default=None)  # None = no timeout
    chunk_size: int = Field(default=64 * 1024)
    user_agent: str = Field(default=f"synclocal/{__version__}")
    verify_ssl: bool = Field(default=True)

    class Config:
        env_prefix = "HTTP_"


class StateSettings(BaseSettings):
    """State store configuration."""

    url: str = Field(default="sqlite:///./.synclocal/state.db")

    class Config:
        env_prefix = "STATE_"


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="synclocal")
    version: str = Field(default=__version__)
    environment: str = Field(default="development")

    # Sub-settings
    logging: LoggingSettings = LoggingSettings()
    http: HttpSettings = HttpSettings()
    state: StateSettings = StateSettings()

    class Config:
        env_prefix = "SYNCLOCAL_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get application settings."""
    return settings
