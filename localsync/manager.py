# Localsync Repository Manager
# Composition root owning one repository per entity type

import logging
from typing import Optional, Union, cast

import requests

from localsync.config.schema import ConflictPolicy, RemoteConfig
from localsync.config.store import ConfigStore
from localsync.errors import NotInitialized
from localsync.remote import DEFAULT_TIMEOUT
from localsync.repository.base import BaseRepository, SyncableRepository, supports_remote
from localsync.repository.todos import TodoRepository
from localsync.repository.users import UserRepository
from localsync.storage.store import LocalStore
from localsync.sync.conflict import ConflictResolver, Resolution
from localsync.sync.engine import DEFAULT_PAGE_SIZE, SyncEngine
from localsync.sync.result import Conflict, SyncResult

logger = logging.getLogger(__name__)


class RepositoryManager:
    """
    Owns the repositories, the config store and one sync engine per repository.

    Construct it once at the application entry point, call initialize() with
    the local store, and pass it to consumers.
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize manager.

        Args:
            session: HTTP session shared by all remote clients.
            timeout: Remote request timeout in seconds.
            page_size: Remote listing page size during pull.
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.page_size = page_size
        self._store: Optional[LocalStore] = None
        self._config_store: Optional[ConfigStore] = None
        self._repositories: dict[str, BaseRepository] = {}
        self._engines: dict[str, SyncEngine] = {}

    @property
    def is_initialized(self) -> bool:
        return self._store is not None

    def initialize(self, store: LocalStore) -> None:
        """Create the bundled repositories and load the persisted remote config."""
        self._store = store
        self._repositories.clear()
        self._engines.clear()
        self._config_store = ConfigStore(store)

        self.register("users", UserRepository(store, session=self.session, timeout=self.timeout))
        self.register("todos", TodoRepository(store, session=self.session, timeout=self.timeout))

        self._config_store.load()

    def register(self, name: str, repository: BaseRepository) -> None:
        """
        Register a repository under an entity-type name.

        Remote-capable repositories follow the remote config and get a sync engine.
        """
        config_store = self._require_config_store()
        self._repositories[name] = repository
        if supports_remote(repository):
            config_store.register(repository)
        if isinstance(repository, SyncableRepository):
            self._engines[name] = SyncEngine(repository, page_size=self.page_size)

    def _require_config_store(self) -> ConfigStore:
        if self._config_store is None:
            raise NotInitialized()
        return self._config_store

    def repository(self, name: str) -> BaseRepository:
        """
        Get a repository by entity-type name.

        Raises:
            NotInitialized: If initialize() has not run.
            KeyError: If no repository has this name.
        """
        if not self.is_initialized:
            raise NotInitialized()
        if name not in self._repositories:
            raise KeyError(f"Repository '{name}' not found")
        return self._repositories[name]

    @property
    def users(self) -> UserRepository:
        return cast(UserRepository, self.repository("users"))

    @property
    def todos(self) -> TodoRepository:
        return cast(TodoRepository, self.repository("todos"))

    @property
    def names(self) -> list[str]:
        """Registered entity-type names, in registration order."""
        return list(self._repositories)

    def engine(self, name: str) -> SyncEngine:
        self.repository(name)
        if name not in self._engines:
            raise KeyError(f"Repository '{name}' does not support sync")
        return self._engines[name]

    # Remote configuration

    def get_remote_config(self) -> Optional[RemoteConfig]:
        return self._require_config_store().config

    def set_remote_config(self, config: RemoteConfig) -> None:
        """Apply a new remote config to every repository and persist it."""
        self._require_config_store().set(config)

    # Sync

    def sync(self, name: str) -> SyncResult:
        """Run one sync pass for a single repository."""
        return self.engine(name).run()

    def sync_all(self) -> dict[str, SyncResult]:
        """
        Sync every sync-capable repository, one after another.

        Returns:
            Entity-type name to result. Empty when remote sync is off.
        """
        config = self.get_remote_config()
        if config is None or not config.sync_enabled:
            logger.debug("Remote sync disabled, skipping sync_all")
            return {}

        results: dict[str, SyncResult] = {}
        for name, engine in self._engines.items():
            results[name] = engine.run()
        return results

    def resolve_conflict(
        self,
        conflict: Conflict,
        policy: Union[ConflictPolicy, str, ConflictResolver, None] = None,
    ) -> Resolution:
        """Resolve a conflict with the engine of the repository that owns its table."""
        for engine in self._engines.values():
            if engine.table == conflict.table:
                return engine.resolve_conflict(conflict, policy)
        raise KeyError(f"No repository for table '{conflict.table}'")

    def status(self) -> dict[str, dict[str, int]]:
        """Record and dirty counts per repository."""
        if not self.is_initialized:
            raise NotInitialized()
        summary: dict[str, dict[str, int]] = {}
        for name, repository in self._repositories.items():
            entry = {"total": repository.count_local()}
            if isinstance(repository, SyncableRepository):
                entry["dirty"] = repository.count_dirty()
            summary[name] = entry
        return summary

    def close(self) -> None:
        """Close the HTTP session and the local store, when it can be closed."""
        self.session.close()
        close = getattr(self._store, "close", None)
        if callable(close):
            close()
        self._store = None
        self._config_store = None
        self._repositories.clear()
        self._engines.clear()
