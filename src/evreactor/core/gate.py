# src/evreactor/core/gate.py
from __future__ import annotations

import asyncio
import threading
from typing import Optional


class CompletionGate:
    """Counting latch: ``wait`` returns once ``count_down`` was called ``expected_count`` times.

    Extra ``count_down`` calls past zero are ignored; the count never goes
    negative and a released gate stays released.
    """

    def __init__(self, expected_count: int):
        if int(expected_count) < 0:
            raise ValueError("expected_count must be >= 0")
        self._count = int(expected_count)
        self._cond = threading.Condition()

    @property
    def count(self) -> int:
        with self._cond:
            return self._count

    def count_down(self) -> None:
        with self._cond:
            if self._count == 0:
                return
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the count is zero. Returns False if ``timeout`` elapsed first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)

    async def wait_async(self, timeout: Optional[float] = None) -> bool:
        """Same as ``wait`` without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.wait, timeout)

    def __repr__(self) -> str:
        return f"CompletionGate(count={self.count})"
