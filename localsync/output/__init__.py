# Localsync Output Module
# Rich console output

from localsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
