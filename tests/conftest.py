# Localsync Test Fixtures
# Pytest fixtures for localsync tests

import json
import tempfile
from collections.abc import Generator
from pathlib import Path
from datetime import timedelta
from typing import Any, Optional, Union
from urllib.parse import urlsplit

import pytest

from localsync.config.schema import FeatureFlags, RemoteConfig
from localsync.manager import RepositoryManager
from localsync.repository import TodoRepository, UserRepository
from localsync.storage import SQLStore, ensure_schema
from localsync.utils.timestamps import format_timestamp, utc_now

BASE_URL = "https://api.example.test/v1"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, body: Any = None, reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.content = b"" if body is None else json.dumps(body).encode("utf-8")
        self.text = self.content.decode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeRemoteSession:
    """
    In-memory REST service speaking through the requests.Session interface.

    Records are kept per table in insertion order. Created records get the
    next id from ``queued_ids`` or ``r1``, ``r2``... and keep the payload's
    ``updated_at`` unless ``clock_skew`` is set, in which case writes are
    stamped with the server clock running that far ahead.
    """

    def __init__(self):
        self.records: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[dict[str, Any]] = []
        self.queued_ids: list[str] = []
        self.ignore_paging = False
        self.clock_skew: Optional[timedelta] = None
        self.closed = False
        self._failures: list[tuple[str, Optional[str], Optional[dict[str, Any]], Union[FakeResponse, Exception]]] = []
        self._counter = 0

    # Test helpers

    def seed(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        self.records.setdefault(table, {})[str(record["id"])] = dict(record)
        return record

    def fail(
        self,
        method: str,
        outcome: Union[FakeResponse, Exception],
        *,
        remote_id: Optional[str] = None,
        match: Optional[dict[str, Any]] = None,
    ) -> None:
        """Make matching requests return ``outcome`` (or raise it)."""
        self._failures.append((method, remote_id, match, outcome))

    def calls_for(self, method: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method]

    def close(self) -> None:
        self.closed = True

    # requests.Session interface

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "headers": headers or {}, "params": params, "json": json, "timeout": timeout}
        )
        table, remote_id = self._route(url)

        for fail_method, fail_id, match, outcome in self._failures:
            if fail_method != method or (fail_id is not None and fail_id != remote_id):
                continue
            if match and not all((json or {}).get(key) == value for key, value in match.items()):
                continue
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        records = self.records.setdefault(table, {})
        if method == "GET" and remote_id is None:
            return FakeResponse(200, self._list(records, params or {}))
        if method == "GET":
            if remote_id not in records:
                return FakeResponse(404, {"error": "not found"}, reason="Not Found")
            return FakeResponse(200, records[remote_id])
        if method == "POST":
            new_id = self.queued_ids.pop(0) if self.queued_ids else self._next_id()
            records[new_id] = {**json, "id": new_id, **self._server_stamp()}
            return FakeResponse(201, records[new_id], reason="Created")
        if method == "PUT":
            if remote_id not in records:
                return FakeResponse(404, {"error": "not found"}, reason="Not Found")
            records[remote_id] = {**records[remote_id], **json, "id": remote_id, **self._server_stamp()}
            return FakeResponse(200, records[remote_id])
        if method == "DELETE":
            records.pop(remote_id, None)
            return FakeResponse(204, None, reason="No Content")
        return FakeResponse(405, None, reason="Method Not Allowed")

    def _route(self, url: str) -> tuple[str, Optional[str]]:
        path = urlsplit(url).path[len(urlsplit(BASE_URL).path):].strip("/")
        parts = path.split("/")
        return parts[0], parts[1] if len(parts) > 1 else None

    def _server_stamp(self) -> dict[str, str]:
        if self.clock_skew is None:
            return {}
        return {"updated_at": format_timestamp(utc_now() + self.clock_skew)}

    def _next_id(self) -> str:
        self._counter += 1
        return f"r{self._counter}"

    def _list(self, records: dict[str, dict[str, Any]], params: dict[str, Any]) -> list[dict[str, Any]]:
        filters = {key: value for key, value in params.items() if key not in ("limit", "offset")}
        items = [
            record
            for record in records.values()
            if all(_as_query_value(record.get(key)) == value for key, value in filters.items())
        ]
        if self.ignore_paging:
            return items
        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", 50))
        return items[offset : offset + limit]


def _as_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> Generator[SQLStore, None, None]:
    """In-memory database with the bundled schema."""
    sql_store = SQLStore()
    ensure_schema(sql_store)
    yield sql_store
    sql_store.close()


@pytest.fixture
def fake_remote() -> FakeRemoteSession:
    return FakeRemoteSession()


@pytest.fixture
def remote_config() -> RemoteConfig:
    """Enabled remote config with content sync on."""
    return RemoteConfig(
        enabled=True,
        base_url=BASE_URL,
        api_key="secret-key",
        features=FeatureFlags(content_sync=True),
    )


@pytest.fixture
def users(store: SQLStore, fake_remote: FakeRemoteSession, remote_config: RemoteConfig) -> UserRepository:
    return UserRepository(store, remote_config, session=fake_remote)


@pytest.fixture
def todos(store: SQLStore, fake_remote: FakeRemoteSession, remote_config: RemoteConfig) -> TodoRepository:
    return TodoRepository(store, remote_config, session=fake_remote)


@pytest.fixture
def manager(store: SQLStore, fake_remote: FakeRemoteSession) -> RepositoryManager:
    """Initialized manager wired to the fake remote service."""
    repository_manager = RepositoryManager(session=fake_remote)
    repository_manager.initialize(store)
    return repository_manager
