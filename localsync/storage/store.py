# Localsync Local Store
# Parameterized select/execute access to the local SQL database

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from localsync.utils.timestamps import format_timestamp


@dataclass
class ExecuteResult:
    """Outcome of a write statement."""

    rows_affected: int = 0
    last_insert_id: Optional[int] = None


@runtime_checkable
class LocalStore(Protocol):
    """
    Contract of the local persistent store.

    Queries use named ``:param`` placeholders. Each execute() is committed on
    its own; there is no cross-statement transaction.
    """

    def select(self, query: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]: ...

    def execute(self, query: str, params: Optional[dict[str, Any]] = None) -> ExecuteResult: ...


def to_column_value(value: Any) -> Any:
    """Convert a Python value to its stored representation."""
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def bind_param(params: dict[str, Any], value: Any) -> str:
    """Add ``value`` to ``params`` under a fresh name and return its placeholder."""
    name = f"p{len(params)}"
    params[name] = to_column_value(value)
    return f":{name}"


class SQLStore:
    """LocalStore backed by a SQLAlchemy engine."""

    def __init__(self, url: str = "sqlite://", *, engine: Optional[Engine] = None, echo: bool = False):
        """
        Initialize the store.

        Args:
            url: Database URL. ``sqlite://`` is a single shared in-memory database.
            engine: Pre-built engine, takes precedence over ``url``.
            echo: Log emitted SQL.
        """
        if engine is None:
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine = create_engine(
                    url,
                    echo=echo,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                engine = create_engine(url, echo=echo)
        self.engine = engine

    @classmethod
    def from_path(cls, path: Path, *, echo: bool = False) -> "SQLStore":
        """Open (or create) a SQLite database file."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite:///{path}", echo=echo)

    def select(self, query: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.execute(text(query), params or {})
            return [dict(row) for row in result.mappings()]

    def execute(self, query: str, params: Optional[dict[str, Any]] = None) -> ExecuteResult:
        with self.engine.begin() as conn:
            result = conn.execute(text(query), params or {})
            rows = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else 0
            return ExecuteResult(rows_affected=rows, last_insert_id=result.lastrowid)

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
