"""Wall clock shared by every time-dependent component.

Components take a ``Clock`` so tests can pin "now".
"""

from __future__ import annotations

import time
from collections.abc import Callable

#: Returns the current time in epoch milliseconds.
Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)
