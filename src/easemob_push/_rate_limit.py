"""
Fixed-window rate limiting for the easemob_push SDK.

The Easemob REST API enforces per-app call quotas over fixed windows (the push
endpoints default to 1 call per second). This module mirrors that discipline
on the client side:

- PermitPool: bounded counter of admission slots (capacity = rate).
- ResetClock: background thread that drains the pool back to zero every
  `interval` seconds.
- FixedWindowLimiter: composes both and supports safe reconfiguration.

The limiter is a fixed-window counter, not a token bucket: at most `rate`
admissions happen per window, but a burst at the end of one window can be
followed by another burst right at the start of the next.

Example:
    >>> from easemob_push._rate_limit import FixedWindowLimiter
    >>> limiter = FixedWindowLimiter(rate=10, interval=1.0)
    >>> limiter.acquire(timeout=5.0)  # blocks until a permit is granted
    >>> limiter.close()
"""

import enum
import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from easemob_push._errors import ClientClosedError, EasemobError
from easemob_push._utils import ReadWriteLock, deadline_from_timeout, remaining_time

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class AdmissionCancelledError(EasemobError):
    """
    Raised when the caller's cancellation fires while waiting for a permit.

    The caller is not counted as admitted: no permit is consumed.

    Attributes:
        waited: Time in seconds the thread waited before giving up.

    Example:
        >>> cancel = threading.Event()
        >>> try:
        ...     limiter.acquire(cancel=cancel)
        ... except AdmissionCancelledError as e:
        ...     print(f"Gave up after {e.waited:.1f}s")
    """

    def __init__(self, waited: float, message: str | None = None):
        self.waited = waited
        super().__init__(message or f"Rate limit admission cancelled after {waited:.2f}s")


class AdmissionTimeoutError(AdmissionCancelledError):
    """
    Raised when the caller's timeout elapses while waiting for a permit.

    Attributes:
        waited: Time in seconds the thread waited before giving up.
        max_wait_time: The timeout the caller asked for.
    """

    def __init__(self, waited: float, max_wait_time: float):
        self.max_wait_time = max_wait_time
        super().__init__(
            waited,
            f"Rate limit timeout: waited {waited:.2f}s, max_wait_time={max_wait_time:.2f}s",
        )


# =============================================================================
# Permit Pool
# =============================================================================


class _Admission(enum.Enum):
    ADMITTED = "ADMITTED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"
    RETIRED = "RETIRED"


class PermitPool:
    """
    Bounded counter of admission slots.

    Invariant: `0 <= occupancy <= capacity` at every instant.

    A pool is retired with `close()` when the limiter is reconfigured or shut
    down; threads still waiting on it are woken and told to look again.

    Args:
        capacity: Number of permits available per window (>= 0).
    """

    # How often a waiter re-checks its cancellation event. Events cannot wake
    # a Condition, so waits are sliced when a cancel event is given.
    CANCEL_POLL_INTERVAL = 0.05

    def __init__(self, capacity: int):
        assert capacity is not None, "capacity cannot be None."
        assert capacity >= 0, "capacity must be >= 0."

        self.capacity = capacity
        self._occupied = 0
        self._closed = False
        self._cond = threading.Condition(threading.Lock())

    @property
    def occupancy(self) -> int:
        """Number of permits granted since the last drain."""
        with self._cond:
            return self._occupied

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def acquire(
        self,
        cancel: threading.Event | None = None,
        deadline: float | None = None,
    ) -> _Admission:
        """
        Take one permit, waiting while the pool is full.

        Args:
            cancel: Event that aborts the wait when set.
            deadline: `time.monotonic()` instant after which the wait is abandoned.

        Returns:
            ADMITTED when a permit was granted, CANCELLED or TIMED_OUT when the
            wait was abandoned (nothing consumed), RETIRED when the pool was
            closed before a permit became available.
        """
        with self._cond:
            while True:
                if self._closed:
                    return _Admission.RETIRED
                if self._occupied < self.capacity:
                    self._occupied += 1
                    return _Admission.ADMITTED
                if cancel is not None and cancel.is_set():
                    return _Admission.CANCELLED

                remaining = remaining_time(deadline)
                if remaining is not None and remaining <= 0:
                    return _Admission.TIMED_OUT

                wait_for = self.CANCEL_POLL_INTERVAL if cancel is not None else None
                if remaining is not None:
                    wait_for = remaining if wait_for is None else min(wait_for, remaining)
                self._cond.wait(wait_for)

    def drain(self) -> int:
        """
        Release every granted permit in one step.

        Returns:
            How many permits were released.
        """
        with self._cond:
            released = self._occupied
            self._occupied = 0
            self._cond.notify_all()
            return released

    def close(self) -> None:
        """Retire the pool and wake every waiter."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()


# =============================================================================
# Reset Clock
# =============================================================================


class ResetClock:
    """
    Background thread that calls `on_tick` every `interval` seconds.

    Ticks are scheduled against `time.monotonic()` so a slow tick does not
    shift the following windows. A clock runs at most once: it cannot be
    restarted after `stop()`.

    If `on_tick` raises, the error is logged and the loop ends. The embedding
    application keeps running, but the limiter no longer resets.

    Args:
        interval: Tick period in seconds (> 0).
        on_tick: Callable invoked on every tick from the clock thread.
        name: Thread name, useful in thread dumps.
    """

    def __init__(
        self,
        interval: float,
        on_tick: Callable[[], Any],
        name: str = "easemob-reset-clock",
    ):
        assert interval is not None, "interval cannot be None."
        assert interval > 0, "interval must be greater than 0."
        assert on_tick is not None, "on_tick cannot be None."

        self.interval = interval
        self._on_tick = on_tick
        self._name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        assert self._thread is None, "🌀 Sanity check | ResetClock can only be started once."

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the loop to exit and wait until it has."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self) -> None:
        logger.debug(f"ResetClock '{self._name}': started (interval={self.interval}s).")
        next_tick = time.monotonic() + self.interval
        try:
            while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
                self._on_tick()
                next_tick += self.interval
                # Skip windows missed while the process was suspended
                now = time.monotonic()
                if next_tick <= now:
                    missed = int((now - next_tick) // self.interval) + 1
                    next_tick += missed * self.interval
        except Exception:
            logger.exception(
                f"❌ ResetClock '{self._name}': tick failed, the rate limiter will no longer reset."
            )
        finally:
            logger.debug(f"ResetClock '{self._name}': stopped.")


# =============================================================================
# Fixed-Window Limiter
# =============================================================================


class FixedWindowLimiter:
    """
    Thread-safe fixed-window rate limiter.

    Admits at most `rate` callers per `interval` seconds. Every window the
    whole quota is restored at once by a `ResetClock`.

    Special values:
        - rate=0: nothing is ever admitted; `acquire` waits until cancelled.
        - interval=0: no clock runs, so granted permits are never returned
          until the limiter is reconfigured.

    The limiter takes its guard from the owner (`lock`) so that the client
    state and the limiter share one shared/exclusive lock. Waiting for a
    permit never holds that lock.

    Example:
        >>> limiter = FixedWindowLimiter(rate=1, interval=1.0)
        >>> limiter.acquire()            # immediate
        >>> limiter.acquire(timeout=2)   # waits for the next window
        >>> limiter.reconfigure(rate=10, interval=60.0)
        >>> limiter.close()

    Args:
        rate: Permits per window (>= 0).
        interval: Window length in seconds (>= 0).
        lock: Shared/exclusive guard. A private one is created if None.
    """

    def __init__(
        self,
        rate: int,
        interval: float,
        lock: ReadWriteLock | None = None,
    ):
        self._validate(rate, interval)

        self._lock = lock or ReadWriteLock()
        self._rate = rate
        self._interval = interval
        self._closed = False
        self._pool = PermitPool(rate)
        self._clock = self._start_clock(self._pool, interval)

    @staticmethod
    def _validate(rate: int, interval: float) -> None:
        if rate is None or rate < 0:
            raise ValueError(f"rate must be an integer >= 0 (got {rate!r}).")
        if interval is None or interval < 0:
            raise ValueError(f"interval must be >= 0 seconds (got {interval!r}).")

    @staticmethod
    def _start_clock(pool: PermitPool, interval: float) -> ResetClock | None:
        if interval == 0:
            logger.debug("FixedWindowLimiter: interval=0, permits will not be reset.")
            return None
        clock = ResetClock(interval=interval, on_tick=pool.drain)
        clock.start()
        return clock

    @property
    def rate(self) -> int:
        with self._lock.read():
            return self._rate

    @property
    def interval(self) -> float:
        with self._lock.read():
            return self._interval

    @property
    def occupancy(self) -> int:
        """Permits granted in the current window."""
        with self._lock.read():
            pool = self._pool
        return pool.occupancy

    @property
    def closed(self) -> bool:
        with self._lock.read():
            return self._closed

    def acquire(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Block until a permit is granted.

        Args:
            cancel: Event that aborts the wait when set.
            timeout: Maximum seconds to wait. None waits indefinitely.

        Raises:
            AdmissionCancelledError: If `cancel` was set before a permit was granted.
            AdmissionTimeoutError: If `timeout` elapsed before a permit was granted.
            ClientClosedError: If the limiter is (or gets) closed.
        """
        started_at = time.monotonic()
        deadline = deadline_from_timeout(timeout)

        while True:
            with self._lock.read():
                if self._closed:
                    raise ClientClosedError("Rate limiter is closed.")
                pool = self._pool

            outcome = pool.acquire(cancel=cancel, deadline=deadline)
            if outcome is _Admission.ADMITTED:
                waited = time.monotonic() - started_at
                if waited > 0.01:
                    logger.debug(f"FixedWindowLimiter: permit granted after waiting {waited:.2f}s.")
                return
            if outcome is _Admission.CANCELLED:
                raise AdmissionCancelledError(waited=time.monotonic() - started_at)
            if outcome is _Admission.TIMED_OUT:
                assert timeout is not None, "🌀 Sanity check | TIMED_OUT without a timeout."
                raise AdmissionTimeoutError(
                    waited=time.monotonic() - started_at,
                    max_wait_time=timeout,
                )
            # RETIRED: the pool was swapped or closed, look again

    def reconfigure(self, rate: int, interval: float) -> None:
        """
        Replace the window size and quota.

        The current clock is stopped (its thread joined) before the fresh pool
        and its new clock are installed, so a stale tick can never drain the
        new pool. Threads waiting on the old pool move over to the new one.

        Raises:
            ValueError: If rate or interval is negative.
            ClientClosedError: If the limiter is closed.
        """
        self._validate(rate, interval)

        with self._lock.write():
            if self._closed:
                raise ClientClosedError("Rate limiter is closed.")

            if self._clock is not None:
                self._clock.stop()
            self._pool.close()

            self._rate = rate
            self._interval = interval
            self._pool = PermitPool(rate)
            self._clock = self._start_clock(self._pool, interval)

        logger.debug(f"FixedWindowLimiter: reconfigured (rate={rate}, interval={interval}s).")

    def close(self) -> None:
        """
        Stop the clock and retire the pool. Must be called exactly once.

        Raises:
            ClientClosedError: If the limiter was already closed.
        """
        with self._lock.write():
            if self._closed:
                raise ClientClosedError("Rate limiter is already closed.")
            if self._clock is not None:
                self._clock.stop()
            self._pool.close()
            self._closed = True
