# Localsync Repository
# Generic local CRUD gateway with optional remote mirroring

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Generic, Optional, Protocol, TypeVar, Union, runtime_checkable

import requests
from pydantic import BaseModel, ValidationError

from localsync.config.schema import RemoteConfig
from localsync.entities import SyncableEntity
from localsync.errors import NotFound
from localsync.filters import EntityFilter
from localsync.remote import DEFAULT_TIMEOUT, RemoteClient
from localsync.storage.store import LocalStore, to_column_value
from localsync.utils.timestamps import next_timestamp, utc_now

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=SyncableEntity)

EntityData = Union[Mapping[str, Any], BaseModel]
FilterArg = Union[EntityFilter, Mapping[str, Any], None]

LIVE_CONDITION = "(is_deleted IS NULL OR is_deleted = 0)"


class BaseRepository(Generic[EntityT]):
    """
    Local CRUD for one entity table.

    Subclasses set ``table``, ``entity_type`` and optionally ``filter_type``.
    Deletes are soft: records are flagged, never removed.
    """

    table: str = ""
    entity_type: type[EntityT]
    filter_type: type[EntityFilter] = EntityFilter

    def __init__(self, store: LocalStore):
        if not self.table:
            raise TypeError(f"{type(self).__name__} must define a table name")
        self.store = store

    @property
    def columns(self) -> frozenset[str]:
        return self.entity_type.columns()

    def generate_id(self) -> str:
        """Mint a new local identifier."""
        return str(uuid.uuid4())

    def _as_dict(self, data: EntityData) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump()
        return dict(data)

    def _from_row(self, row: Mapping[str, Any]) -> EntityT:
        return self.entity_type.model_validate(dict(row))

    def _select_one(self, query: str, params: dict[str, Any]) -> Optional[EntityT]:
        rows = self.store.select(query, params)
        return self._from_row(rows[0]) if rows else None

    def _fetch(self, entity_id: str, *, include_deleted: bool = False) -> Optional[EntityT]:
        query = f"SELECT * FROM {self.table} WHERE id = :id"
        if not include_deleted:
            query += f" AND {LIVE_CONDITION}"
        return self._select_one(query, {"id": entity_id})

    def _next_change_time(self, existing: EntityT) -> datetime:
        # Later than the last sync too, so a change made right after a sync stays dirty
        previous = max(existing.updated_at, existing.last_sync_at or existing.updated_at)
        return next_timestamp(previous)

    def _coerce_filter(self, filter: FilterArg) -> Optional[EntityFilter]:
        if filter is None or isinstance(filter, EntityFilter):
            return filter
        return self.filter_type.model_validate(dict(filter))

    def _where(self, filter: FilterArg, params: dict[str, Any]) -> str:
        clause = f"WHERE {LIVE_CONDITION}"
        entity_filter = self._coerce_filter(filter)
        if entity_filter is not None:
            conditions = entity_filter.build_conditions(params, self.columns)
            if conditions:
                clause += " AND " + " AND ".join(conditions)
        return clause

    # Local operations

    def get_local(self, entity_id: str) -> Optional[EntityT]:
        """Return the non-deleted record with this id, or None."""
        return self._fetch(entity_id)

    def save_local(self, data: EntityData) -> EntityT:
        """
        Insert a new record.

        Missing ``id`` is minted, missing timestamps are set to now and the
        soft-delete flag is forced off.

        Args:
            data: Field values (mapping or entity).

        Returns:
            The stored entity.
        """
        values = {key: value for key, value in self._as_dict(data).items() if key in self.columns}
        now = utc_now()
        if not values.get("id"):
            values["id"] = self.generate_id()
        if not values.get("created_at"):
            values["created_at"] = now
        if not values.get("updated_at"):
            values["updated_at"] = now
        values["is_deleted"] = False

        entity = self.entity_type.model_validate(values)
        row = {column: to_column_value(value) for column, value in entity.model_dump().items()}
        columns = ", ".join(row)
        placeholders = ", ".join(f":{column}" for column in row)
        self.store.execute(f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})", row)
        logger.debug("Inserted %s/%s", self.table, entity.id)
        return entity

    def update_local(self, entity_id: str, data: EntityData) -> EntityT:
        """
        Merge ``data`` over an existing record (deleted or not).

        ``id`` never changes and an established ``remote_id`` is kept.
        ``updated_at`` is stamped strictly later than both its previous value
        and ``last_sync_at``.

        Raises:
            NotFound: If no record has this id.
        """
        existing = self._fetch(entity_id, include_deleted=True)
        if existing is None:
            raise NotFound(self.table, entity_id)

        changes = {
            key: value for key, value in self._as_dict(data).items() if key in self.columns and key != "id"
        }
        if existing.remote_id and changes.get("remote_id", existing.remote_id) != existing.remote_id:
            logger.debug("Keeping remote_id of %s/%s", self.table, entity_id)
            del changes["remote_id"]
        changes["updated_at"] = self._next_change_time(existing)

        merged = self.entity_type.model_validate({**existing.model_dump(), **changes})
        stored = merged.model_dump(include=set(changes))
        assignments = ", ".join(f"{column} = :{column}" for column in stored)
        params = {column: to_column_value(value) for column, value in stored.items()}
        params["id"] = entity_id
        self.store.execute(f"UPDATE {self.table} SET {assignments} WHERE id = :id", params)
        return merged

    def delete_local(self, entity_id: str) -> None:
        """Soft-delete a record. Deleting a deleted or unknown record is a no-op."""
        existing = self._fetch(entity_id, include_deleted=True)
        if existing is None or existing.is_deleted:
            return
        self.store.execute(
            f"UPDATE {self.table} SET is_deleted = 1, updated_at = :updated_at WHERE id = :id",
            {"id": entity_id, "updated_at": to_column_value(self._next_change_time(existing))},
        )

    def list_local(self, filter: FilterArg = None, limit: int = 50, offset: int = 0) -> list[EntityT]:
        """Non-deleted records matching ``filter``, newest change first."""
        params: dict[str, Any] = {}
        query = f"SELECT * FROM {self.table} {self._where(filter, params)}"
        query += " ORDER BY updated_at DESC LIMIT :limit OFFSET :offset"
        params.update(limit=limit, offset=offset)
        return [self._from_row(row) for row in self.store.select(query, params)]

    def count_local(self, filter: FilterArg = None) -> int:
        """Count non-deleted records matching ``filter``."""
        params: dict[str, Any] = {}
        rows = self.store.select(f"SELECT COUNT(*) AS count FROM {self.table} {self._where(filter, params)}", params)
        return int(rows[0]["count"]) if rows else 0


@runtime_checkable
class RemoteCapable(Protocol):
    """Repositories that mirror operations to the remote service."""

    remote: RemoteClient

    def set_remote_config(self, config: Optional[RemoteConfig]) -> None: ...

    def get_remote(self, remote_id: str) -> Any: ...

    def list_remote(self, filter: FilterArg = None, limit: int = 50, offset: int = 0) -> list[Any]: ...

    def save_remote(self, data: Any) -> Any: ...

    def update_remote(self, remote_id: str, data: EntityData) -> Any: ...

    def delete_remote(self, remote_id: str) -> None: ...


def supports_remote(repository: object) -> bool:
    """Check if a repository implements the remote capability."""
    return isinstance(repository, RemoteCapable)


class SyncableRepository(BaseRepository[EntityT]):
    """
    Repository with remote mirroring and the bookkeeping the sync engine needs.

    Remote records are returned in the remote id space: their ``id`` and
    ``remote_id`` both hold the remote identifier.
    """

    def __init__(
        self,
        store: LocalStore,
        config: Optional[RemoteConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(store)
        self.remote = RemoteClient(self.table, config, session=session, timeout=timeout)

    @property
    def remote_config(self) -> Optional[RemoteConfig]:
        return self.remote.config

    def set_remote_config(self, config: Optional[RemoteConfig]) -> None:
        """Follow a remote configuration change."""
        self.remote.config = config

    def to_remote_payload(self, entity: EntityT) -> dict[str, Any]:
        """Full JSON payload of a local record."""
        return entity.model_dump(mode="json")

    def remote_fields(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Fields of a remote record that may overwrite local ones."""
        return {
            key: value
            for key, value in payload.items()
            if key in self.columns and key not in self.entity_type.sync_fields
        }

    def _from_remote(self, payload: Mapping[str, Any]) -> EntityT:
        data = dict(payload)
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        data["remote_id"] = data.get("id")
        return self.entity_type.model_validate(data)

    # Remote operations

    def get_remote(self, remote_id: str) -> Optional[EntityT]:
        payload = self.remote.get(remote_id)
        if payload is None:
            return None
        try:
            return self._from_remote(payload)
        except ValidationError as e:
            logger.warning("Remote get %s/%s returned an invalid record: %s", self.table, remote_id, e)
            return None

    def list_remote(self, filter: FilterArg = None, limit: int = 50, offset: int = 0) -> list[EntityT]:
        entity_filter = self._coerce_filter(filter)
        params = entity_filter.to_query_params() if entity_filter is not None else None
        records: list[EntityT] = []
        for payload in self.remote.list(params, limit, offset):
            try:
                records.append(self._from_remote(payload))
            except ValidationError as e:
                logger.warning("Skipping invalid remote %s record %s: %s", self.table, payload.get("id"), e)
        return records

    def save_remote(self, data: EntityT) -> EntityT:
        return self._from_remote(self.remote.create(self.to_remote_payload(data)))

    def update_remote(self, remote_id: str, data: EntityData) -> Optional[EntityT]:
        if isinstance(data, BaseModel):
            payload = data.model_dump(mode="json")
        else:
            payload = {
                key: value.isoformat() if isinstance(value, datetime) else value for key, value in data.items()
            }
        body = self.remote.update(remote_id, payload)
        return self._from_remote(body) if body is not None else None

    def delete_remote(self, remote_id: str) -> None:
        self.remote.delete(remote_id)

    # Sync bookkeeping

    def list_dirty(self) -> list[EntityT]:
        """Records changed since their last sync, soft-deleted ones included."""
        rows = self.store.select(
            f"SELECT * FROM {self.table} WHERE last_sync_at IS NULL OR updated_at > last_sync_at ORDER BY updated_at ASC",
            {},
        )
        return [self._from_row(row) for row in rows]

    def count_dirty(self) -> int:
        rows = self.store.select(
            f"SELECT COUNT(*) AS count FROM {self.table} WHERE last_sync_at IS NULL OR updated_at > last_sync_at",
            {},
        )
        return int(rows[0]["count"]) if rows else 0

    def find_by_remote_id(self, remote_id: str) -> Optional[EntityT]:
        """Local counterpart of a remote record, soft-deleted ones included."""
        return self._select_one(
            f"SELECT * FROM {self.table} WHERE remote_id = :remote_id LIMIT 1",
            {"remote_id": remote_id},
        )

    def mark_synced(self, entity_id: str, synced_at: datetime, remote_id: Optional[str] = None) -> None:
        """
        Record a successful reconciliation without touching ``updated_at``.

        ``remote_id`` is only written if the record has none yet.
        """
        params: dict[str, Any] = {"id": entity_id, "synced_at": to_column_value(synced_at)}
        assignments = "last_sync_at = :synced_at"
        if remote_id is not None:
            assignments += ", remote_id = COALESCE(remote_id, :remote_id)"
            params["remote_id"] = remote_id
        self.store.execute(f"UPDATE {self.table} SET {assignments} WHERE id = :id", params)
