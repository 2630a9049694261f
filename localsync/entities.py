# Localsync Entities
# Typed records with identity, soft-delete flag and sync timestamps

import json
from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localsync.utils.timestamps import ensure_utc


class BaseEntity(BaseModel):
    """
    Common fields of every stored record.

    ``updated_at`` is stamped on every mutation; ``last_sync_at`` marks the
    last successful reconciliation. A record is dirty when it never synced or
    ``updated_at`` is later than ``last_sync_at``.
    """

    model_config = ConfigDict(extra="ignore")

    # Fields owned by the sync machinery, never taken from a remote payload
    sync_fields: ClassVar[frozenset[str]] = frozenset({"id", "remote_id", "last_sync_at"})

    id: str = Field(description="Opaque unique identifier")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last mutation timestamp")
    last_sync_at: Optional[datetime] = Field(default=None, description="Last successful sync")
    is_deleted: bool = Field(default=False, description="Soft-delete flag")

    @field_validator("created_at", "updated_at", "last_sync_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store every timestamp as aware UTC."""
        if v is None:
            return None
        return ensure_utc(v)

    @field_validator("is_deleted", mode="before")
    @classmethod
    def absent_means_live(cls, v: Any) -> Any:
        """A NULL soft-delete flag counts as not deleted."""
        return False if v is None else v

    @classmethod
    def columns(cls) -> frozenset[str]:
        """Names of the storage columns backing this entity."""
        return frozenset(cls.model_fields)

    def is_dirty(self) -> bool:
        """Check if local changes have not been reconciled yet."""
        return self.last_sync_at is None or self.updated_at > self.last_sync_at


class SyncableEntity(BaseEntity):
    """Entity that can be mirrored to the remote service."""

    remote_id: Optional[str] = Field(default=None, description="Identifier of the remote counterpart")

    @field_validator("remote_id", mode="before")
    @classmethod
    def remote_id_as_string(cls, v: Any) -> Any:
        """Remote services may hand out numeric ids."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class User(SyncableEntity):
    """Application user."""

    name: str
    email: str
    avatar_url: Optional[str] = None
    preferences: dict[str, Any] = Field(default_factory=dict)

    @field_validator("preferences", mode="before")
    @classmethod
    def decode_preferences(cls, v: Any) -> Any:
        """Preferences are stored as JSON text."""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            return json.loads(v)
        return v


class Todo(SyncableEntity):
    """Todo item owned by a user."""

    title: str
    description: Optional[str] = None
    completed: bool = False
    priority: int = 0
    due_date: Optional[datetime] = None
    user_id: str

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        return ensure_utc(v)
