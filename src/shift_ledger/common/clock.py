from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Current time in whole seconds since epoch."""
        raise NotImplementedError


class SystemClock:
    """Wall-clock seconds.

    Note: Services take a clock so tests can pin time.
    """

    def now(self) -> int:
        return int(time.time())
