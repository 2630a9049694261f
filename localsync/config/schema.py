# Localsync Configuration Schema
# Pydantic models for the remote config row and the YAML settings file

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConflictPolicy(str, Enum):
    """Conflict resolution strategy."""

    NEWEST = "newest"
    LOCAL = "local"
    REMOTE = "remote"


class FeatureFlags(BaseModel):
    """Remote feature toggles."""

    model_config = ConfigDict(populate_by_name=True)

    content_sync: bool = Field(default=False, alias="contentSync", description="Mirror and sync entity tables")
    dynamic_feed: bool = Field(default=False, alias="dynamicFeed", description="Remote content feed")
    notifications: bool = Field(default=False, description="Remote notifications")


class RemoteConfig(BaseModel):
    """
    Remote service configuration.

    Gates whether remote mirroring and sync run at all. Serialized with the
    camelCase aliases when persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = Field(default=False, description="Whether the remote service is used")
    base_url: str = Field(default="", alias="baseUrl", description="Base URL of the REST service")
    api_key: Optional[str] = Field(default=None, alias="apiKey", description="Bearer token")
    sync_interval: int = Field(default=300, alias="syncInterval", ge=0, description="Seconds between syncs")
    features: FeatureFlags = Field(default_factory=FeatureFlags)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def sync_enabled(self) -> bool:
        """Check if content sync may run."""
        return self.enabled and self.features.content_sync

    def to_json(self) -> str:
        """Serialize for the config row."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "RemoteConfig":
        """Deserialize a config row value."""
        return cls.model_validate_json(raw)


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class LocalsyncSettings(BaseModel):
    """Root model of the YAML settings file."""

    database_url: str = Field(
        default="sqlite:///~/.local/share/localsync/localsync.db",
        description="SQLAlchemy URL of the local database",
    )
    log_level: str = Field(default="WARNING", description="Root log level")
    request_timeout: float = Field(default=30.0, gt=0, description="Remote request timeout in seconds")
    page_size: int = Field(default=100, ge=1, le=1000, description="Remote listing page size during pull")
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("database_url")
    @classmethod
    def expand_sqlite_path(cls, v: str) -> str:
        """Expand ~ in sqlite file URLs."""
        prefix = "sqlite:///"
        if v.startswith(prefix) and v[len(prefix):].startswith("~"):
            return prefix + str(Path(v[len(prefix):]).expanduser())
        return v

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()
