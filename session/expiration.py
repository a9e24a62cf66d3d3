"""
Expiration helpers for session records.

Records carry an absolute expiration in whole seconds since the epoch.
A session may carry its own max age under ``cookie.max_age`` (seconds);
otherwise the store's default TTL applies.
"""

import time
from datetime import timedelta
from typing import Any, Mapping, Optional


def now_epoch_seconds() -> int:
    """Current time as whole seconds since the epoch."""
    return int(time.time())


def session_max_age(data: Optional[Mapping[str, Any]]) -> Optional[timedelta]:
    """
    Extract the session's own max age, if it declares one.

    Args:
        data: The session payload.

    Returns:
        The max age as a timedelta, or None when the payload has no
        integer ``cookie.max_age``.
    """
    if not isinstance(data, Mapping):
        return None
    cookie = data.get("cookie")
    if not isinstance(cookie, Mapping):
        return None
    max_age = cookie.get("max_age")
    # bool is an int subclass; True is not a max age
    if isinstance(max_age, bool) or not isinstance(max_age, int):
        return None
    return timedelta(seconds=max_age)


def get_expiration(
    data: Optional[Mapping[str, Any]],
    default_ttl: timedelta,
    ttl: Optional[timedelta] = None,
    now: Optional[int] = None,
) -> int:
    """
    Compute the absolute expiration for a session record.

    Precedence: explicit ``ttl``, then the session's ``cookie.max_age``,
    then ``default_ttl``.

    Args:
        data: The session payload.
        default_ttl: The store's configured default time-to-live.
        ttl: Optional explicit time-to-live for this write.
        now: Current epoch seconds; read from the clock when omitted.

    Returns:
        Expiration as whole seconds since the epoch.
    """
    if now is None:
        now = now_epoch_seconds()

    max_age = ttl
    if max_age is None:
        max_age = session_max_age(data)
    if max_age is None:
        max_age = default_ttl

    return now + int(max_age.total_seconds())


def is_expired(expires: Any, now: Optional[int] = None) -> bool:
    """
    Check whether a stored expiration has passed.

    A missing or empty expiration counts as expired so that malformed
    records are never served.
    """
    if not expires:
        return True
    if now is None:
        now = now_epoch_seconds()
    return not expires > now
