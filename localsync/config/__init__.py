# Localsync Configuration Module
# Remote config schema and store, YAML settings loading and defaults

from localsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from localsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
)
from localsync.config.schema import (
    ConflictPolicy,
    FeatureFlags,
    LocalsyncSettings,
    OutputConfig,
    RemoteConfig,
)
from localsync.config.store import REMOTE_CONFIG_KEY, ConfigStore

__all__ = [
    # Schema
    "RemoteConfig",
    "FeatureFlags",
    "ConflictPolicy",
    "LocalsyncSettings",
    "OutputConfig",
    # Store
    "ConfigStore",
    "REMOTE_CONFIG_KEY",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
