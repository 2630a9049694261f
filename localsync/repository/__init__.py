# Localsync Repository Module
# Entity repositories with local CRUD and optional remote mirroring

from localsync.repository.base import (
    BaseRepository,
    RemoteCapable,
    SyncableRepository,
    supports_remote,
)
from localsync.repository.todos import TodoRepository
from localsync.repository.users import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "SyncableRepository",
    "RemoteCapable",
    "supports_remote",
    # Entities
    "UserRepository",
    "TodoRepository",
]
