# Localsync Todo Repository

from datetime import timedelta
from typing import Any, Optional

from localsync.entities import Todo
from localsync.filters import TodoFilter
from localsync.repository.base import LIVE_CONDITION, SyncableRepository
from localsync.storage.store import to_column_value
from localsync.utils.timestamps import utc_now


class TodoRepository(SyncableRepository[Todo]):
    """Todos table."""

    table = "todos"
    entity_type = Todo
    filter_type = TodoFilter

    def get_by_user_id(self, user_id: str, completed: Optional[bool] = None) -> list[Todo]:
        """A user's todos, highest priority first, then newest."""
        query = f"SELECT * FROM {self.table} WHERE user_id = :user_id AND {LIVE_CONDITION}"
        params: dict[str, Any] = {"user_id": user_id}

        if completed is not None:
            query += " AND completed = :completed"
            params["completed"] = int(completed)

        query += " ORDER BY priority DESC, created_at DESC"
        return [self._from_row(row) for row in self.store.select(query, params)]

    def mark_completed(self, todo_id: str, completed: bool = True) -> Todo:
        return self.update_local(todo_id, {"completed": completed})

    def get_upcoming(self, user_id: str, days: int = 7) -> list[Todo]:
        """Open todos of a user that are due within ``days``, soonest first."""
        horizon = utc_now() + timedelta(days=days)
        rows = self.store.select(
            f"""
            SELECT * FROM {self.table}
            WHERE user_id = :user_id
            AND due_date IS NOT NULL
            AND due_date <= :horizon
            AND completed = 0
            AND {LIVE_CONDITION}
            ORDER BY due_date ASC
            """,
            {"user_id": user_id, "horizon": to_column_value(horizon)},
        )
        return [self._from_row(row) for row in rows]
