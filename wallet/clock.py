"""
Clock used by services that need "now".

Services accept an explicit `now` argument and fall back to `utc_now()`.
Routers obtain the clock through the `get_clock` dependency, which tests
override to pin time:

    app.dependency_overrides[get_clock] = lambda: (lambda: fixed_instant)
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency returning the active clock."""
    return utc_now
