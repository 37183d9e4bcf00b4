from __future__ import annotations

import threading


class WorkTracker:
    """Live count of submitted-but-unfinished jobs.

    The total number of jobs is unknown up front, so completion is the
    moment this count returns to zero. A job must only be decremented after
    all of its children have been incremented.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._outstanding = 0
        self._submitted = 0
        self._completed = 0

    def increment(self) -> None:
        with self._condition:
            self._outstanding += 1
            self._submitted += 1

    def decrement(self) -> int:
        with self._condition:
            if self._outstanding == 0:
                raise RuntimeError("Work tracker decremented below zero")
            self._outstanding -= 1
            self._completed += 1
            if self._outstanding == 0:
                self._condition.notify_all()
            return self._outstanding

    def wait_drained(self, timeout: float | None = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    @property
    def outstanding(self) -> int:
        with self._condition:
            return self._outstanding

    @property
    def submitted(self) -> int:
        with self._condition:
            return self._submitted

    @property
    def completed(self) -> int:
        with self._condition:
            return self._completed
