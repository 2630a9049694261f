# Localsync Storage Module
# Local store protocol, SQLAlchemy-backed store and schema bootstrap

from localsync.storage.schema import SCHEMA_STATEMENTS, ensure_schema
from localsync.storage.store import (
    ExecuteResult,
    LocalStore,
    SQLStore,
    bind_param,
    to_column_value,
)

__all__ = [
    # Store
    "LocalStore",
    "SQLStore",
    "ExecuteResult",
    "bind_param",
    "to_column_value",
    # Schema
    "SCHEMA_STATEMENTS",
    "ensure_schema",
]
