"""Time-based record identifiers."""

from __future__ import annotations

import time

_last_id = 0


def time_id() -> str:
    """Return the current epoch milliseconds as a string.

    Successive calls within the same millisecond are bumped forward so two
    ids handed out in one session never collide.
    """

    global _last_id
    candidate = int(time.time() * 1000)
    if candidate <= _last_id:
        candidate = _last_id + 1
    _last_id = candidate
    return str(candidate)


__all__ = ["time_id"]
