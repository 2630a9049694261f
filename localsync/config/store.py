# Localsync Config Store
# Persists the remote configuration as a single row and fans it out

import logging
from typing import Optional, Protocol

from localsync.config.schema import RemoteConfig
from localsync.storage.store import LocalStore
from localsync.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

CONFIG_TABLE = "app_config"
REMOTE_CONFIG_KEY = "remote_config"


class RemoteConfigurable(Protocol):
    """Anything that follows remote configuration changes."""

    def set_remote_config(self, config: Optional[RemoteConfig]) -> None: ...


class ConfigStore:
    """
    Owner of the current RemoteConfig.

    The in-memory config is authoritative. A failed write is logged and not
    rolled back, so memory and storage may differ until the next good write.
    """

    def __init__(self, store: LocalStore, *, table: str = CONFIG_TABLE, key: str = REMOTE_CONFIG_KEY):
        self.store = store
        self.table = table
        self.key = key
        self._config: Optional[RemoteConfig] = None
        self._subscribers: list[RemoteConfigurable] = []

    @property
    def config(self) -> Optional[RemoteConfig]:
        """Current remote configuration, None until loaded or set."""
        return self._config

    def register(self, subscriber: RemoteConfigurable) -> None:
        """Register a subscriber and hand it the current config."""
        self._subscribers.append(subscriber)
        if self._config is not None:
            subscriber.set_remote_config(self._config)

    def load(self) -> Optional[RemoteConfig]:
        """
        Load the persisted config and propagate it to all subscribers.

        Returns:
            The loaded config, or None if none is stored or it cannot be read.
        """
        try:
            rows = self.store.select(
                f"SELECT value FROM {self.table} WHERE key = :key",
                {"key": self.key},
            )
            if not rows:
                return None
            config = RemoteConfig.from_json(rows[0]["value"])
        except Exception:
            logger.exception("Failed to load remote config")
            return None

        self._config = config
        self._propagate(config)
        return config

    def set(self, config: RemoteConfig) -> None:
        """Update in memory, propagate, then persist."""
        self._config = config
        self._propagate(config)
        self._persist(config)

    def _propagate(self, config: RemoteConfig) -> None:
        for subscriber in self._subscribers:
            subscriber.set_remote_config(config)

    def _persist(self, config: RemoteConfig) -> None:
        try:
            self.store.execute(
                f"INSERT OR REPLACE INTO {self.table} (key, value, updated_at) VALUES (:key, :value, :updated_at)",
                {"key": self.key, "value": config.to_json(), "updated_at": format_timestamp(utc_now())},
            )
        except Exception:
            logger.exception("Failed to save remote config")
