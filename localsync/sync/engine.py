# Localsync Sync Engine
# Push/pull reconciliation of one repository against the remote service

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional, Union

from localsync.config.schema import ConflictPolicy
from localsync.entities import SyncableEntity
from localsync.errors import SyncItemFailure, SyncPassFailure
from localsync.repository.base import SyncableRepository
from localsync.sync.conflict import ConflictResolver, Resolution, get_resolver, has_conflict
from localsync.sync.result import Conflict, ConflictType, SyncResult
from localsync.utils.timestamps import EPOCH, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class SyncEngine:
    """
    Reconciles one repository with its remote table.

    A pass pushes dirty local records, then pulls the full remote listing.
    Every failure is recorded in the returned SyncResult; nothing is raised.
    Overlapping passes on the same engine are refused.
    """

    def __init__(
        self,
        repository: SyncableRepository,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize sync engine.

        Args:
            repository: Repository to reconcile.
            page_size: Remote listing page size during pull.
            clock: Source of sync timestamps.
        """
        self.repository = repository
        self.page_size = page_size
        self.clock = clock
        self._lock = threading.Lock()

    @property
    def table(self) -> str:
        return self.repository.table

    @property
    def is_running(self) -> bool:
        """Check if a pass is in progress."""
        return self._lock.locked()

    def run(self) -> SyncResult:
        """Run a full pass: push, then pull."""
        return self._guarded(self._push, self._pull)

    def push(self) -> SyncResult:
        """Run only the push phase."""
        return self._guarded(self._push)

    def pull(self) -> SyncResult:
        """Run only the pull phase."""
        return self._guarded(self._pull)

    def _guarded(self, *phases: Callable[[SyncResult], None]) -> SyncResult:
        config = self.repository.remote_config
        if config is None or not config.sync_enabled:
            return SyncResult.disabled()

        if not self._lock.acquire(blocking=False):
            return SyncResult(success=False, errors=[f"Sync already in progress for {self.table}"])

        result = SyncResult(success=True)
        try:
            for phase in phases:
                phase(result)
        except Exception as e:
            failure = SyncPassFailure(e)
            logger.exception("Sync of %s aborted", self.table)
            result.add_error(str(failure))
        finally:
            self._lock.release()

        logger.info(
            "Synced %s: created=%d updated=%d conflicts=%d errors=%d",
            self.table,
            result.created,
            result.updated,
            len(result.conflicts),
            len(result.errors),
        )
        return result

    def _sync_stamp(self, entity: SyncableEntity, remote_time: Optional[datetime] = None) -> datetime:
        # Never earlier than either side's updated_at, so neither reads as changed afterwards
        return max(self.clock(), entity.updated_at, remote_time or EPOCH)

    def _response_time(self, body: Optional[dict[str, Any]]) -> Optional[datetime]:
        """The updated_at a write response carries, if any."""
        if not body:
            return None
        try:
            return parse_timestamp(body.get("updated_at"))
        except (AttributeError, TypeError, ValueError):
            logger.warning("Ignoring unparsable updated_at in %s response: %r", self.table, body.get("updated_at"))
            return None

    def _record_failure(self, result: SyncResult, entity_id: Any, error: Exception, phase: str) -> None:
        failure = SyncItemFailure(str(entity_id), error, phase=phase)
        logger.warning("%s", failure)
        result.add_error(str(failure))

    # Push

    def _push(self, result: SyncResult) -> None:
        for item in self.repository.list_dirty():
            try:
                self._push_item(item, result)
            except Exception as e:
                self._record_failure(result, item.id, e, "push")

    def _push_item(self, item: SyncableEntity, result: SyncResult) -> None:
        payload = self.repository.to_remote_payload(item)

        if item.remote_id:
            body = self.repository.remote.update(item.remote_id, payload)
            self.repository.mark_synced(item.id, self._sync_stamp(item, self._response_time(body)))
            result.updated += 1
            return

        created = self.repository.remote.create(payload)
        remote_id = created.get("id")
        if remote_id is None or remote_id == "":
            raise ValueError("remote response carries no id")
        stamp = self._sync_stamp(item, self._response_time(created))
        self.repository.mark_synced(item.id, stamp, remote_id=str(remote_id))
        result.created += 1

    # Pull

    def _fetch_remote(self) -> list[dict[str, Any]]:
        """Page through the full remote listing."""
        records: list[dict[str, Any]] = []
        seen: set[str] = set()
        offset = 0

        while True:
            page = self.repository.remote.list(limit=self.page_size, offset=offset)
            fresh = [record for record in page if str(record.get("id")) not in seen]
            records.extend(fresh)
            seen.update(str(record.get("id")) for record in fresh)
            # A short page ends the listing; a page of known ids means paging is ignored
            if len(page) < self.page_size or not fresh:
                return records
            offset += len(page)

    def _pull(self, result: SyncResult) -> None:
        for remote_item in self._fetch_remote():
            try:
                self._pull_item(remote_item, result)
            except Exception as e:
                self._record_failure(result, remote_item.get("id"), e, "pull")

    def _pull_item(self, remote_item: dict[str, Any], result: SyncResult) -> None:
        raw_id = remote_item.get("id")
        if raw_id is None or raw_id == "":
            raise ValueError("remote record carries no id")
        remote_id = str(raw_id)
        remote_time = parse_timestamp(remote_item.get("updated_at"))
        remote_deleted = bool(remote_item.get("is_deleted"))

        local = self.repository.find_by_remote_id(remote_id)

        if local is None:
            if remote_deleted:
                return
            fields = self.repository.remote_fields(remote_item)
            fields.update(id=self.repository.generate_id(), remote_id=remote_id)
            created = self.repository.save_local(fields)
            self.repository.mark_synced(created.id, self._sync_stamp(created, remote_time))
            result.created += 1
            return

        if has_conflict(local.updated_at, remote_time, local.last_sync_at):
            conflict_type = ConflictType.DELETE if (remote_deleted or local.is_deleted) else ConflictType.UPDATE
            result.conflicts.append(
                Conflict(
                    id=local.id,
                    table=self.table,
                    local_data=local.model_dump(mode="json"),
                    remote_data=dict(remote_item),
                    conflict_type=conflict_type,
                )
            )
            return

        # Remote unchanged since the last sync: nothing to apply
        if (remote_time or EPOCH) <= (local.last_sync_at or EPOCH):
            return

        updated = self.repository.update_local(local.id, self.repository.remote_fields(remote_item))
        self.repository.mark_synced(local.id, self._sync_stamp(updated, remote_time))
        result.updated += 1

    # Conflict resolution

    def resolve_conflict(
        self,
        conflict: Conflict,
        policy: Union[ConflictPolicy, str, ConflictResolver, None] = None,
    ) -> Resolution:
        """
        Resolve a conflict reported by pull.

        The default policy is last-write-wins. When remote wins, its data
        overwrites the local record, which is then marked synced; when local
        wins, the local record stays untouched and is pushed by the next pass.

        Returns:
            The side that won.
        """
        resolution = get_resolver(policy)(conflict)
        if resolution == Resolution.REMOTE:
            updated = self.repository.update_local(conflict.id, self.repository.remote_fields(conflict.remote_data))
            remote_time = parse_timestamp(conflict.remote_data.get("updated_at"))
            self.repository.mark_synced(conflict.id, self._sync_stamp(updated, remote_time))
        logger.info("Resolved conflict on %s/%s: %s wins", self.table, conflict.id, resolution.value)
        return resolution
