"""
UTC datetime utilities for consistent timezone handling.

Export metadata timestamps are timezone-aware UTC. Use these helpers
instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """
    Return the current UTC time as an ISO-8601 string with millisecond precision
    and a trailing 'Z' (the format used in export metadata, e.g.
    '2026-10-19T08:15:30.123Z').
    """
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
