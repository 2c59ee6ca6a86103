"""
Qualis: Clock Abstractions

This module implements the injectable clocks used to timestamp rows.
All timestamps are integer milliseconds since the Unix epoch.

Key responsibilities:
- Provide a production clock whose readings never go backwards within a
  process, even if the system clock is adjusted
- Provide a strictly increasing clock so that rows stamped in sequence
  (e.g. change records of one install) have a deterministic order

External dependencies:
- time: Standard library wall-clock access only

Database tables accessed:
- None (pure time logic)

Thread safety: Both clocks guard their last reading with a lock.

Author: Qualis Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

# ============================================================================
# Imports
# ============================================================================

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol

# ============================================================================
# Clocks
# ============================================================================


def _wall_clock_millis() -> int:
    return int(time.time() * 1000)


class Clock(Protocol):
    """Source of integer millisecond timestamps."""

    def now(self) -> int:  # pragma: no cover - interface
        ...


class SystemClock:
    """Wall clock that is monotonically non-decreasing in-process.

    If the underlying wall clock steps backwards, the previous reading is
    returned until wall time catches up again.
    """

    def __init__(self, source: Callable[[], int] = _wall_clock_millis) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, self._source())
            return self._last


class AlwaysIncreasingClock:
    """Clock returning a strictly greater value on every call.

    Each reading is the wall clock or ``previous + step``, whichever is
    greater.
    """

    def __init__(
        self,
        source: Callable[[], int] = _wall_clock_millis,
        step: int = 1,
    ) -> None:
        if step <= 0:
            raise ValueError("step must be positive")
        self._source = source
        self._step = step
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last + self._step, self._source())
            return self._last
