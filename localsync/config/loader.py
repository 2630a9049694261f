# Localsync Configuration Loader
# Load and save the YAML settings file

import os
from pathlib import Path
from typing import Optional

import yaml

from localsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from localsync.config.schema import LocalsyncSettings


def get_config_dir() -> Path:
    """Get the localsync configuration directory."""
    return Path.home() / ".config" / "localsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("LOCALSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> LocalsyncSettings:
    """
    Load settings from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        LocalsyncSettings: Validated settings.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config file is invalid.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}\nRun 'localsync init' to create one.")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    merged = {**DEFAULT_CONFIG, **data}
    if "output" in data:
        merged["output"] = {**DEFAULT_CONFIG["output"], **(data["output"] or {})}

    return LocalsyncSettings.model_validate(merged)


def save_config(settings: LocalsyncSettings, config_path: Optional[Path] = None) -> Path:
    """
    Save settings to YAML file.

    Returns:
        Path: Path where settings were saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True
