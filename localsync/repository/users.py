# Localsync User Repository

from typing import Any, Optional

from localsync.entities import User
from localsync.errors import NotFound
from localsync.filters import UserFilter
from localsync.repository.base import LIVE_CONDITION, SyncableRepository


class UserRepository(SyncableRepository[User]):
    """Users table."""

    table = "users"
    entity_type = User
    filter_type = UserFilter

    def find_by_email(self, email: str) -> Optional[User]:
        return self._select_one(
            f"SELECT * FROM {self.table} WHERE email = :email AND {LIVE_CONDITION}",
            {"email": email},
        )

    def update_preferences(self, user_id: str, preferences: dict[str, Any]) -> User:
        """
        Shallow-merge ``preferences`` into the stored preference map.

        Raises:
            NotFound: If the user does not exist or is deleted.
        """
        user = self.get_local(user_id)
        if user is None:
            raise NotFound(self.table, user_id)
        return self.update_local(user_id, {"preferences": {**user.preferences, **preferences}})
