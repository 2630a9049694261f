# Localsync Schema
# Table definitions for the bundled entity types and the config row

from localsync.storage.store import LocalStore

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        avatar_url TEXT,
        preferences TEXT NOT NULL DEFAULT '{}',
        remote_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_sync_at TEXT,
        is_deleted INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS todos (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        completed INTEGER NOT NULL DEFAULT 0,
        priority INTEGER NOT NULL DEFAULT 0,
        due_date TEXT,
        user_id TEXT NOT NULL,
        remote_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_sync_at TEXT,
        is_deleted INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_config (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_users_remote_id ON users (remote_id)",
    "CREATE INDEX IF NOT EXISTS idx_users_updated_at ON users (updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_todos_remote_id ON todos (remote_id)",
    "CREATE INDEX IF NOT EXISTS idx_todos_updated_at ON todos (updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_todos_user_id ON todos (user_id)",
)


def ensure_schema(store: LocalStore) -> None:
    """Create the bundled tables and indexes if they are missing."""
    for statement in SCHEMA_STATEMENTS:
        store.execute(statement)
