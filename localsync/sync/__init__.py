# Localsync Sync Module
# Reconciliation engine, results and conflict policies

from localsync.sync.conflict import (
    ConflictResolver,
    Resolution,
    get_resolver,
    has_conflict,
    last_write_wins,
)
from localsync.sync.engine import SyncEngine
from localsync.sync.result import Conflict, ConflictType, SyncResult

__all__ = [
    # Results
    "SyncResult",
    "Conflict",
    "ConflictType",
    # Conflicts
    "Resolution",
    "ConflictResolver",
    "has_conflict",
    "last_write_wins",
    "get_resolver",
    # Engine
    "SyncEngine",
]
