"""
Internal helpers shared by the easemob_push modules.

These helpers are not part of the public API and may change without notice.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager


class ReadWriteLock:
    """
    Shared/exclusive lock built on a single `threading.Condition`.

    Any number of readers may hold the lock at the same time; a writer holds
    it alone. Waiting writers block new readers, so a steady stream of
    readers cannot starve a reconfiguration.

    The lock is NOT reentrant: a thread holding the read side must not try
    to take the write side (or the read side again while a writer waits).

    Example:
        >>> lock = ReadWriteLock()
        >>> with lock.read():
        ...     value = state.token
        >>> with lock.write():
        ...     state.token = "new"
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            assert self._readers > 0, "🌀 Sanity check | release_read() without a matching acquire_read()."
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            assert self._writer, "🌀 Sanity check | release_write() without a matching acquire_write()."
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


def remaining_time(deadline: float | None) -> float | None:
    """
    Seconds left until a `time.monotonic()` deadline.

    Returns None when there is no deadline, and never a negative value.
    """
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def deadline_from_timeout(timeout: float | None) -> float | None:
    """Convert a relative timeout (seconds) into a `time.monotonic()` deadline."""
    if timeout is None:
        return None
    assert timeout >= 0, "timeout must be >= 0 or None."
    return time.monotonic() + timeout
