"""Wall clock access in epoch milliseconds."""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def fixed_clock(timestamp_ms: int) -> Clock:
    """Return a clock frozen at ``timestamp_ms``."""

    def _clock() -> int:
        return timestamp_ms

    return _clock


def resolve_clock(clock: Clock | None) -> Clock:
    return clock if clock is not None else system_clock
