# Localsync Default Configuration
# Default settings as Python dict and YAML generator

from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "database_url": "sqlite:///~/.local/share/localsync/localsync.db",
    "log_level": "WARNING",
    "request_timeout": 30.0,
    "page_size": 100,
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# localsync configuration
#
# database_url:    SQLAlchemy URL of the local-first database
# log_level:       DEBUG, INFO, WARNING or ERROR
# request_timeout: Seconds before a remote request gives up
# page_size:       Records fetched per remote listing request during pull
#
# The remote service itself (URL, API key, feature flags) is stored in the
# database; manage it with 'localsync config set'.

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
