"""localsync - local-first data repositories with remote sync.

Entity repositories perform CRUD against a local SQL store, mirror writes to
a REST service, and reconcile both sides with a push/pull sync pass.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "BaseEntity",
    "SyncableEntity",
    "User",
    "Todo",
    "RemoteConfig",
    "RepositoryManager",
    "SyncEngine",
    "SyncResult",
    "Conflict",
    "SQLStore",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("BaseEntity", "SyncableEntity", "User", "Todo"):
        from localsync import entities

        return getattr(entities, name)
    if name == "RemoteConfig":
        from localsync.config.schema import RemoteConfig

        return RemoteConfig
    if name == "RepositoryManager":
        from localsync.manager import RepositoryManager

        return RepositoryManager
    if name in ("SyncEngine", "SyncResult", "Conflict"):
        from localsync import sync

        return getattr(sync, name)
    if name == "SQLStore":
        from localsync.storage import SQLStore

        return SQLStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
