# Localsync Utilities Module
# Helper functions for timestamp handling

from localsync.utils.timestamps import (
    EPOCH,
    ensure_utc,
    format_timestamp,
    next_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "EPOCH",
    "ensure_utc",
    "format_timestamp",
    "next_timestamp",
    "parse_timestamp",
    "utc_now",
]
