# Localsync Conflict Handling
# Conflict detection and resolution policies

from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from localsync.config.schema import ConflictPolicy
from localsync.sync.result import Conflict
from localsync.utils.timestamps import EPOCH, parse_timestamp


class Resolution(str, Enum):
    """Side that wins a conflict."""

    LOCAL = "local"
    REMOTE = "remote"


ConflictResolver = Callable[[Conflict], Resolution]


def has_conflict(local_time: datetime, remote_time: Optional[datetime], sync_time: Optional[datetime]) -> bool:
    """
    Check if both sides changed since the last sync and disagree.

    Args:
        local_time: Local ``updated_at``.
        remote_time: Remote ``updated_at`` (None counts as epoch).
        sync_time: Local ``last_sync_at`` (None counts as epoch).

    Returns:
        True if the record is in conflict.
    """
    synced = sync_time or EPOCH
    remote = remote_time or EPOCH
    return local_time > synced and remote > synced and local_time != remote


def last_write_wins(conflict: Conflict) -> Resolution:
    """Remote wins only if its ``updated_at`` is strictly later."""
    local_time = parse_timestamp(conflict.local_data.get("updated_at")) or EPOCH
    remote_time = parse_timestamp(conflict.remote_data.get("updated_at")) or EPOCH
    if remote_time > local_time:
        return Resolution.REMOTE
    return Resolution.LOCAL


def prefer_local(conflict: Conflict) -> Resolution:
    return Resolution.LOCAL


def prefer_remote(conflict: Conflict) -> Resolution:
    return Resolution.REMOTE


_POLICIES: dict[ConflictPolicy, ConflictResolver] = {
    ConflictPolicy.NEWEST: last_write_wins,
    ConflictPolicy.LOCAL: prefer_local,
    ConflictPolicy.REMOTE: prefer_remote,
}


def get_resolver(policy: Union[ConflictPolicy, str, ConflictResolver, None] = None) -> ConflictResolver:
    """
    Turn a policy name or callable into a resolver.

    None falls back to last-write-wins.

    Raises:
        ValueError: If the policy name is unknown.
    """
    if policy is None:
        return last_write_wins
    if callable(policy):
        return policy
    return _POLICIES[ConflictPolicy(policy)]
