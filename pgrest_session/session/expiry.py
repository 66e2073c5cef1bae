"""
Session expiry computation.

Expiry instants are absolute Unix timestamps in whole seconds, which is
what the ``expire`` column of the session table holds.
"""

import math
import time
from numbers import Real
from typing import Any, Callable, Mapping, Optional


# One day, used when neither a fixed TTL nor a cookie maxAge is available
DEFAULT_TTL_SECONDS = 86400

Clock = Callable[[], float]


def now_seconds(clock: Clock = time.time) -> int:
    """Current wall-clock time as whole Unix seconds, rounded down."""
    return math.floor(clock())


def compute_expiry(
    max_age: Optional[float] = None,
    *,
    ttl: Optional[float] = None,
    now: Optional[float] = None,
) -> int:
    """
    Figure out when a session should expire.

    A fixed ``ttl`` (seconds) wins over ``max_age``. Otherwise ``max_age``
    is taken as milliseconds, the unit session cookies use. With neither,
    sessions live for one day.

    Args:
        max_age: Cookie max age in milliseconds.
        ttl: Fixed time-to-live in seconds.
        now: Current Unix time in seconds; defaults to ``time.time()``.

    Returns:
        The expiry instant as Unix seconds, rounded up.
    """
    if now is None:
        now = time.time()

    if ttl:
        ttl_seconds = ttl
    elif isinstance(max_age, Real) and not isinstance(max_age, bool):
        ttl_seconds = max_age / 1000
    else:
        ttl_seconds = DEFAULT_TTL_SECONDS

    return math.ceil(ttl_seconds + now)


def cookie_max_age(sess: Any) -> Optional[float]:
    """Pull ``cookie.maxAge`` out of an express-style session payload, if any."""
    if not isinstance(sess, Mapping):
        return None
    cookie = sess.get("cookie")
    if not isinstance(cookie, Mapping):
        return None
    max_age = cookie.get("maxAge")
    if isinstance(max_age, Real) and not isinstance(max_age, bool):
        return max_age
    return None
