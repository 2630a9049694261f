# Localsync Sync Results
# Outcome of one sync pass over one repository

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SYNC_DISABLED_ERROR = "Remote sync not enabled"


class ConflictType(str, Enum):
    """Kind of conflict found during pull."""

    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Conflict:
    """A record modified independently on both sides since its last sync."""

    id: str
    table: str
    local_data: dict[str, Any]
    remote_data: dict[str, Any]
    conflict_type: ConflictType = ConflictType.UPDATE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "table": self.table,
            "local_data": self.local_data,
            "remote_data": self.remote_data,
            "conflict_type": self.conflict_type.value,
        }


@dataclass
class SyncResult:
    """Result of a sync pass. Failures are recorded here, never raised."""

    success: bool = True
    conflicts: list[Conflict] = field(default_factory=list)
    updated: int = 0
    created: int = 0
    deleted: int = 0
    errors: list[str] = field(default_factory=list)

    @classmethod
    def disabled(cls) -> "SyncResult":
        """Result of a pass refused because remote sync is off."""
        return cls(success=False, errors=[SYNC_DISABLED_ERROR])

    @property
    def has_issues(self) -> bool:
        """Check if there are any conflicts or errors."""
        return bool(self.conflicts) or bool(self.errors)

    @property
    def total_changes(self) -> int:
        return self.created + self.updated + self.deleted

    def add_error(self, message: str) -> None:
        """Record a failure and mark the pass unsuccessful."""
        self.errors.append(message)
        self.success = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
            "updated": self.updated,
            "created": self.created,
            "deleted": self.deleted,
            "errors": list(self.errors),
        }
