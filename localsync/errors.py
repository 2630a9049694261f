# Localsync Errors
# Exception hierarchy shared by repositories, the sync engine and the manager

from typing import Any


class LocalsyncError(Exception):
    """Base class for all localsync errors."""


class NotFound(LocalsyncError):
    """Raised when an update targets a record that does not exist."""

    def __init__(self, table: str, entity_id: str):
        self.table = table
        self.entity_id = entity_id
        super().__init__(f"Record with id {entity_id} not found in '{table}'")


class NotInitialized(LocalsyncError):
    """Raised when the manager is used before initialize() ran."""

    def __init__(self, message: str = "RepositoryManager not initialized"):
        super().__init__(message)


class RemoteDisabled(LocalsyncError):
    """Raised when a remote write is attempted while mirroring is off."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Remote service not enabled for '{table}'")


class RemoteRequestFailed(LocalsyncError):
    """Raised when a remote write fails (non-2xx or transport error)."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class SyncItemFailure(LocalsyncError):
    """A single record failed during a sync phase. Recorded, never raised past the engine."""

    def __init__(self, entity_id: str, cause: BaseException, phase: str = "push"):
        self.entity_id = entity_id
        self.cause = cause
        self.phase = phase
        if phase == "pull":
            message = f"Failed to merge remote item {entity_id}: {cause}"
        else:
            message = f"Failed to sync item {entity_id}: {cause}"
        super().__init__(message)


class SyncPassFailure(LocalsyncError):
    """A failure outside the per-record handlers aborted the pass."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Sync failed: {cause}")
