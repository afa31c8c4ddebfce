"""Timestamp helpers for cache freshness and HTTP headers."""

from datetime import datetime, timezone
from email.utils import format_datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_mtime(mtime: float) -> datetime:
    """
    Convert a filesystem modification time to an aware UTC datetime.

    Sub-second precision is dropped because Last-Modified only carries seconds.
    """
    return datetime.fromtimestamp(int(mtime), tz=timezone.utc)


def http_date(dt: datetime) -> str:
    """
    Format datetime for a Last-Modified header.

    Examples:
        http_date(datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        # "Thu, 02 Jan 2020 03:04:05 GMT"
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def now() -> str:
    """Compact local timestamp for directory names (YYYYMMDD_HHMMSS)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")
