from __future__ import annotations

import threading


class PermitPool:
    """Counting pool of ``limit`` execution permits.

    ``acquire`` blocks until a permit is free. ``held`` and ``peak`` are kept
    under a separate lock so observers never wait on a blocked acquirer.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Permit limit must be a positive integer, got {limit}")
        self.limit = limit
        self._semaphore = threading.BoundedSemaphore(limit)
        self._lock = threading.Lock()
        self._held = 0
        self._peak = 0

    def acquire(self) -> None:
        self._semaphore.acquire()
        with self._lock:
            self._held += 1
            self._peak = max(self._peak, self._held)

    def release(self) -> None:
        with self._lock:
            if self._held == 0:
                raise ValueError("Permit released more times than it was acquired")
            self._held -= 1
        self._semaphore.release()

    @property
    def held(self) -> int:
        with self._lock:
            return self._held

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak
