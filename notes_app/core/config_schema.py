"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    RemoteSchema       → remote.yaml
    LoggingSchema      → logging.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class SearchSchema(_StrictBase):
    debounce_ms: int = Field(ge=0)


class NotesSchema(_StrictBase):
    title_max_length: int = Field(gt=0)


class AuthSchema(_StrictBase):
    min_password_length: int = Field(ge=0)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    theme: Literal["dark", "light"]
    search: SearchSchema
    notes: NotesSchema
    auth: AuthSchema


# =============================================================================
# remote.yaml
# =============================================================================


class RemoteSchema(_StrictBase):
    auth_path: str
    rest_path: str
    notes_table: str
    request_timeout: float | None
    client_info: str


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: Literal["json", "console"]
    handlers: HandlersSchema
