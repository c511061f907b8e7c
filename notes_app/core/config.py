"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
No hardcoded values in code. All configuration comes from these sources.

Secrets (.env, environment variables take precedence):
    NOTES_SERVICE_URL, NOTES_SERVICE_KEY

Settings (YAML):
    application.yaml   - App identity, theme, search debounce, validation limits
    remote.yaml        - Remote service paths, table name, request timeout
    logging.yaml       - Logging configuration

Both secrets are required. Their absence is fatal at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notes_app.core.config_schema import (
    ApplicationSchema,
    LoggingSchema,
    RemoteSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Remote service endpoint and access key loaded from config/.env."""

    notes_service_url: str
    notes_service_key: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._remote = _load_validated(RemoteSchema, "remote.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def remote(self) -> RemoteSchema:
        """Remote notes service settings."""
        return self._remote

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging


@lru_cache
def get_settings() -> Settings:
    """
    Get cached secrets instance. Resolves .env path from project root.

    Raises:
        ValueError: If the service URL or access key is not configured
    """
    env_path = find_project_root() / "config" / ".env"
    try:
        return Settings(_env_file=str(env_path))
    except ValidationError as e:
        missing = ", ".join(
            str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")
        )
        raise ValueError(
            f"Remote service is not configured. Set {missing} in config/.env "
            "or the environment."
        ) from e


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_remote_endpoint() -> tuple[str, str, float | None]:
    """
    Get the remote service base URL, access key and request timeout.

    Returns:
        Tuple of (base_url, access_key, timeout_seconds or None).
    """
    settings = get_settings()
    timeout = get_app_config().remote.request_timeout
    return settings.notes_service_url.rstrip("/"), settings.notes_service_key, timeout
