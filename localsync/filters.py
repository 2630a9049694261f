# Localsync Filters
# Typed list/count filters resolved into SQL conditions and remote query params

from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict

from localsync.storage.store import bind_param


class EntityFilter(BaseModel):
    """
    Equality filter over entity columns.

    Declared fields and any extra keyword become ``column = value`` conditions.
    Subclasses list non-equality fields in ``custom_fields`` and translate them
    in ``build_conditions``.
    """

    model_config = ConfigDict(extra="allow")

    custom_fields: ClassVar[frozenset[str]] = frozenset()

    def values(self) -> dict[str, Any]:
        """Return the set (non-None) filter values, extras included."""
        return self.model_dump(exclude_none=True)

    def build_conditions(self, params: dict[str, Any], columns: frozenset[str]) -> list[str]:
        """
        Build SQL conditions, adding bound values to ``params``.

        Args:
            params: Bound parameters of the query being built.
            columns: Columns of the target table.

        Returns:
            Conditions to be joined with AND.

        Raises:
            ValueError: If a filter field is not a column of the table.
        """
        conditions: list[str] = []
        for column, value in self.values().items():
            if column in self.custom_fields:
                continue
            if column not in columns:
                raise ValueError(f"Unknown filter field '{column}'")
            conditions.append(f"{column} = {bind_param(params, value)}")
        return conditions

    def to_query_params(self) -> dict[str, str]:
        """Render the filter as remote listing query parameters."""
        query: dict[str, str] = {}
        for key, value in self.values().items():
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
            elif isinstance(value, datetime):
                query[key] = value.isoformat()
            else:
                query[key] = str(value)
        return query


class UserFilter(EntityFilter):
    """Filter for the users table."""

    name: Optional[str] = None
    email: Optional[str] = None


class TodoFilter(EntityFilter):
    """Filter for the todos table, with substring search over title and description."""

    custom_fields: ClassVar[frozenset[str]] = frozenset({"search"})

    user_id: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[int] = None
    search: Optional[str] = None

    def build_conditions(self, params: dict[str, Any], columns: frozenset[str]) -> list[str]:
        conditions = super().build_conditions(params, columns)
        if self.search:
            placeholder = bind_param(params, f"%{self.search}%")
            conditions.append(f"(title LIKE {placeholder} OR description LIKE {placeholder})")
        return conditions
