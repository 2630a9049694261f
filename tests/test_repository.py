# Tests for localsync.repository
# Local CRUD, filters, soft deletes and sync bookkeeping

from datetime import datetime, timedelta, timezone

import pytest

from localsync.errors import NotFound
from localsync.filters import TodoFilter, UserFilter
from localsync.repository import TodoRepository, UserRepository
from localsync.utils.timestamps import utc_now

T0 = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def add_todo(repo: TodoRepository, **fields):
    data = {"title": "Task", "user_id": "u1"}
    data.update(fields)
    return repo.save_local(data)


class TestSaveLocal:
    """Tests for record insertion."""

    def test_mints_unique_ids(self, todos):
        """Each save without an id gets a fresh identifier."""
        first = add_todo(todos)
        second = add_todo(todos)
        assert first.id and second.id
        assert first.id != second.id

    def test_timestamps_equal_on_create(self, todos):
        todo = add_todo(todos)
        assert todo.created_at == todo.updated_at
        assert todo.last_sync_at is None

    def test_keeps_explicit_id_and_timestamps(self, todos):
        todo = add_todo(todos, id="a1", created_at=T0, updated_at=T0)
        stored = todos.get_local("a1")
        assert stored.id == "a1"
        assert stored.updated_at == T0
        assert stored.created_at == T0

    def test_forces_live_record(self, todos):
        todo = add_todo(todos, is_deleted=True)
        assert todo.is_deleted is False
        assert todos.get_local(todo.id) is not None

    def test_roundtrips_typed_fields(self, todos):
        due = T0 + timedelta(days=2)
        todo = add_todo(todos, completed=True, priority=3, due_date=due, description="notes")
        stored = todos.get_local(todo.id)
        assert stored.completed is True
        assert stored.priority == 3
        assert stored.due_date == due
        assert stored.description == "notes"

    def test_ignores_unknown_fields(self, todos):
        todo = add_todo(todos, colour="red")
        assert todos.get_local(todo.id) == todo

    def test_accepts_entity(self, todos):
        todo = add_todo(todos)
        copy = todo.model_copy(update={"id": "copy"})
        assert todos.save_local(copy).id == "copy"


class TestUpdateLocal:
    """Tests for record updates."""

    def test_merges_partial_data(self, todos):
        todo = add_todo(todos, title="Old", priority=1)
        updated = todos.update_local(todo.id, {"title": "New"})
        assert updated.title == "New"
        assert updated.priority == 1
        assert todos.get_local(todo.id).title == "New"

    def test_id_never_changes(self, todos):
        todo = add_todo(todos)
        updated = todos.update_local(todo.id, {"id": "other", "title": "New"})
        assert updated.id == todo.id
        assert todos.get_local("other") is None

    def test_updated_at_strictly_increases(self, todos):
        """Even a future updated_at is superseded."""
        todo = add_todo(todos, updated_at=utc_now() + timedelta(hours=1))
        updated = todos.update_local(todo.id, {"title": "New"})
        assert updated.updated_at > todo.updated_at
        assert todos.get_local(todo.id).updated_at == updated.updated_at

    def test_caller_cannot_set_updated_at(self, todos):
        todo = add_todo(todos)
        updated = todos.update_local(todo.id, {"updated_at": T0})
        assert updated.updated_at > todo.updated_at

    def test_unknown_id(self, todos):
        with pytest.raises(NotFound) as exc_info:
            todos.update_local("missing", {"title": "New"})
        assert exc_info.value.entity_id == "missing"
        assert "missing" in str(exc_info.value)

    def test_established_remote_id_is_kept(self, todos):
        todo = add_todo(todos, remote_id="r1")
        updated = todos.update_local(todo.id, {"remote_id": "r2", "title": "New"})
        assert updated.remote_id == "r1"
        assert todos.get_local(todo.id).remote_id == "r1"

    def test_first_remote_id_can_be_set(self, todos):
        todo = add_todo(todos)
        assert todos.update_local(todo.id, {"remote_id": "r7"}).remote_id == "r7"

    def test_updates_deleted_record(self, todos):
        todo = add_todo(todos)
        todos.delete_local(todo.id)
        updated = todos.update_local(todo.id, {"is_deleted": False})
        assert updated.is_deleted is False
        assert todos.get_local(todo.id) is not None


class TestDeleteLocal:
    """Tests for soft deletes."""

    def test_soft_delete_hides_record(self, todos):
        todo = add_todo(todos)
        todos.delete_local(todo.id)
        assert todos.get_local(todo.id) is None
        rows = todos.store.select("SELECT is_deleted FROM todos WHERE id = :id", {"id": todo.id})
        assert rows[0]["is_deleted"] == 1

    def test_delete_is_idempotent(self, todos):
        """A second delete leaves the same state and does not raise."""
        todo = add_todo(todos)
        todos.delete_local(todo.id)
        first = todos.store.select("SELECT * FROM todos WHERE id = :id", {"id": todo.id})
        todos.delete_local(todo.id)
        second = todos.store.select("SELECT * FROM todos WHERE id = :id", {"id": todo.id})
        assert first == second
        assert second[0]["is_deleted"] == 1

    def test_delete_unknown_id(self, todos):
        todos.delete_local("missing")

    def test_edit_after_sync_ahead_of_clock_is_dirty(self, todos):
        """A sync stamp later than the local clock does not hide the next edit."""
        todo = add_todo(todos)
        todos.mark_synced(todo.id, utc_now() + timedelta(seconds=5))
        updated = todos.update_local(todo.id, {"title": "Edited"})
        assert updated.is_dirty()
        assert todos.count_dirty() == 1

    def test_delete_after_sync_ahead_of_clock_is_dirty(self, todos):
        todo = add_todo(todos)
        todos.mark_synced(todo.id, utc_now() + timedelta(seconds=5))
        todos.delete_local(todo.id)
        assert todos.count_dirty() == 1

    def test_delete_marks_record_dirty(self, todos):
        todo = add_todo(todos)
        todos.mark_synced(todo.id, todo.updated_at)
        assert todos.count_dirty() == 0
        todos.delete_local(todo.id)
        assert [item.id for item in todos.list_dirty()] == [todo.id]


class TestListLocal:
    """Tests for listing and counting."""

    def test_excludes_deleted(self, todos):
        kept = add_todo(todos)
        gone = add_todo(todos)
        todos.delete_local(gone.id)
        listed = todos.list_local()
        assert [todo.id for todo in listed] == [kept.id]
        assert all(not todo.is_deleted for todo in listed)
        assert todos.count_local() == 1

    def test_newest_change_first(self, todos):
        add_todo(todos, id="old", updated_at=T0)
        add_todo(todos, id="new", updated_at=T0 + timedelta(minutes=5))
        assert [todo.id for todo in todos.list_local()] == ["new", "old"]

    def test_limit_and_offset(self, todos):
        for minute in range(5):
            add_todo(todos, id=f"t{minute}", updated_at=T0 + timedelta(minutes=minute))
        page = todos.list_local(limit=2, offset=1)
        assert [todo.id for todo in page] == ["t3", "t2"]

    def test_equality_filter_mapping(self, todos):
        add_todo(todos, user_id="u1")
        add_todo(todos, user_id="u2")
        listed = todos.list_local({"user_id": "u2"})
        assert [todo.user_id for todo in listed] == ["u2"]
        assert todos.count_local({"user_id": "u1"}) == 1

    def test_typed_filter(self, todos):
        add_todo(todos, completed=True)
        add_todo(todos, completed=False)
        assert todos.count_local(TodoFilter(completed=True)) == 1
        assert todos.count_local(TodoFilter(completed=False)) == 1

    def test_search_filter(self, todos):
        add_todo(todos, title="Buy milk")
        add_todo(todos, title="Call Bob", description="about the milk order")
        add_todo(todos, title="Pay rent")
        assert todos.count_local(TodoFilter(search="milk")) == 2

    def test_unknown_filter_field(self, todos):
        with pytest.raises(ValueError):
            todos.list_local({"colour": "red"})

    def test_empty_filter(self, todos):
        add_todo(todos)
        assert todos.count_local(TodoFilter()) == 1


class TestFilters:
    """Tests for filter rendering."""

    def test_query_params(self):
        params = TodoFilter(user_id="u1", completed=False, priority=2).to_query_params()
        assert params == {"user_id": "u1", "completed": "false", "priority": "2"}

    def test_unset_fields_skipped(self):
        assert UserFilter(email="a@b.c").to_query_params() == {"email": "a@b.c"}

    def test_conditions_bind_values(self):
        params: dict = {}
        conditions = UserFilter(name="Ada").build_conditions(params, frozenset({"name"}))
        assert conditions == ["name = :p0"]
        assert params == {"p0": "Ada"}


class TestSyncBookkeeping:
    """Tests for dirty listing and mark_synced."""

    def test_list_dirty_oldest_first(self, todos):
        add_todo(todos, id="b", updated_at=T0 + timedelta(minutes=1))
        add_todo(todos, id="a", updated_at=T0)
        assert [todo.id for todo in todos.list_dirty()] == ["a", "b"]
        assert todos.count_dirty() == 2

    def test_mark_synced_keeps_updated_at(self, todos):
        todo = add_todo(todos, updated_at=T0)
        todos.mark_synced(todo.id, T0 + timedelta(minutes=1))
        stored = todos.get_local(todo.id)
        assert stored.updated_at == T0
        assert stored.last_sync_at == T0 + timedelta(minutes=1)
        assert not stored.is_dirty()
        assert todos.list_dirty() == []

    def test_mark_synced_sets_missing_remote_id_only(self, todos):
        fresh = add_todo(todos)
        linked = add_todo(todos, remote_id="r1")
        todos.mark_synced(fresh.id, utc_now(), remote_id="r5")
        todos.mark_synced(linked.id, utc_now(), remote_id="r6")
        assert todos.get_local(fresh.id).remote_id == "r5"
        assert todos.get_local(linked.id).remote_id == "r1"

    def test_find_by_remote_id_includes_deleted(self, todos):
        todo = add_todo(todos, remote_id="r1")
        todos.delete_local(todo.id)
        found = todos.find_by_remote_id("r1")
        assert found.id == todo.id
        assert found.is_deleted is True
        assert todos.find_by_remote_id("r404") is None


class TestUserRepository:
    """Tests for user-specific operations."""

    def test_find_by_email(self, users):
        user = users.save_local({"name": "Ada", "email": "ada@example.com"})
        assert users.find_by_email("ada@example.com").id == user.id
        assert users.find_by_email("bob@example.com") is None

    def test_find_by_email_skips_deleted(self, users):
        user = users.save_local({"name": "Ada", "email": "ada@example.com"})
        users.delete_local(user.id)
        assert users.find_by_email("ada@example.com") is None

    def test_update_preferences_merges(self, users):
        user = users.save_local({"name": "Ada", "email": "ada@example.com", "preferences": {"theme": "dark"}})
        updated = users.update_preferences(user.id, {"language": "en"})
        assert updated.preferences == {"theme": "dark", "language": "en"}
        assert users.get_local(user.id).preferences == {"theme": "dark", "language": "en"}

    def test_update_preferences_unknown_user(self, users):
        with pytest.raises(NotFound):
            users.update_preferences("missing", {"theme": "light"})

    def test_name_filter(self, users):
        users.save_local({"name": "Ada", "email": "ada@example.com"})
        users.save_local({"name": "Bob", "email": "bob@example.com"})
        assert [user.name for user in users.list_local(UserFilter(name="Bob"))] == ["Bob"]


class TestTodoRepository:
    """Tests for todo-specific operations."""

    def test_get_by_user_id_orders_by_priority(self, todos):
        add_todo(todos, id="low", priority=1)
        add_todo(todos, id="high", priority=5)
        add_todo(todos, id="other", user_id="u2", priority=9)
        assert [todo.id for todo in todos.get_by_user_id("u1")] == ["high", "low"]

    def test_get_by_user_id_completed_filter(self, todos):
        add_todo(todos, id="done", completed=True)
        add_todo(todos, id="open")
        assert [todo.id for todo in todos.get_by_user_id("u1", completed=False)] == ["open"]
        assert [todo.id for todo in todos.get_by_user_id("u1", completed=True)] == ["done"]

    def test_mark_completed(self, todos):
        todo = add_todo(todos)
        assert todos.mark_completed(todo.id).completed is True
        assert todos.mark_completed(todo.id, completed=False).completed is False

    def test_get_upcoming(self, todos):
        now = utc_now()
        add_todo(todos, id="later", due_date=now + timedelta(days=3))
        add_todo(todos, id="soon", due_date=now + timedelta(days=1))
        add_todo(todos, id="far", due_date=now + timedelta(days=30))
        add_todo(todos, id="done", due_date=now + timedelta(days=1), completed=True)
        add_todo(todos, id="undated")
        assert [todo.id for todo in todos.get_upcoming("u1")] == ["soon", "later"]
        assert [todo.id for todo in todos.get_upcoming("u1", days=60)] == ["soon", "later", "far"]
