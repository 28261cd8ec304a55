"""
Timestamp utilities:
- ISO-8601 timestamp generator (audit log)
- UNIX seconds clock (request timestamps)
"""

from __future__ import annotations
import datetime as _dt
import time


def utc_now() -> _dt.datetime:
    """Return a timezone-aware UTC datetime."""
    return _dt.datetime.now(tz=_dt.timezone.utc)


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with Z suffix."""
    return utc_now().isoformat().replace("+00:00", "Z")


def unix_now() -> int:
    """Whole seconds since the epoch; the default request clock."""
    return int(time.time())
