"""
=============================================================================
IN-FLIGHT COUNTER
=============================================================================

The single piece of state shared by every request the server handles: how
many requests are currently admitted and have not yet answered.

=============================================================================
ADMISSION IS ONE CRITICAL SECTION
=============================================================================

The naive version of admission control is a read-then-write race:

    Thread A: reads 4          Thread B: reads 4
    Thread A: 4 < 5, admit     Thread B: 4 < 5, admit
    Thread A: writes 5         Thread B: writes 5      ← 6 requests running!

Both the increment and the limit test happen under the same lock, so only
one thread at a time can observe and change the value:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      try_acquire()                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   with lock:                                                         │
    │       value += 1                                                     │
    │       if value > limit:                                              │
    │           value -= 1          ← undo, caller answers 429             │
    │           return False                                               │
    │       return True             ← slot held, caller MUST release()     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The lock is held for a few bytecodes only. Nothing slow (the simulated
processing delay in particular) ever runs while holding it.

=============================================================================
"""

import threading
from contextlib import contextmanager
from typing import Iterator


CONCURRENCY_LIMIT = 5


class CounterUnderflowError(RuntimeError):
    """
    Raised when more slots are released than were acquired.

    This can only happen through a bug in the caller (a double release).
    The counter refuses to go negative instead of silently corrupting the
    admission accounting for every later request.
    """


class InFlightCounter:
    """
    Thread-safe counter of admitted, unfinished requests.

    Invariant: ``0 <= value <= limit`` whenever no thread is inside
    ``try_acquire()`` or ``release()``.

    Usage:
        counter = InFlightCounter(limit=5)

        if not counter.try_acquire():
            return too_many_requests()
        try:
            ...  # do the work
        finally:
            counter.release()
    """

    def __init__(self, limit: int = CONCURRENCY_LIMIT):
        """
        Args:
            limit: Maximum number of simultaneously admitted requests.
        """
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        self._limit = limit
        self._value = 0
        self._lock = threading.Lock()

        # Lifetime totals, handy when debugging a client under test
        self._admitted = 0
        self._rejected = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def value(self) -> int:
        """Current number of admitted requests (a snapshot)."""
        with self._lock:
            return self._value

    @property
    def available(self) -> int:
        """Slots that are free right now (a snapshot)."""
        with self._lock:
            return self._limit - self._value

    def try_acquire(self) -> bool:
        """
        Atomically take one slot if the limit allows it.

        Returns:
            True if the caller now holds a slot and must call release()
            exactly once. False if the server is at capacity; the counter
            is left exactly as it was.
        """
        with self._lock:
            self._value += 1
            if self._value > self._limit:
                self._value -= 1
                self._rejected += 1
                return False
            self._admitted += 1
            return True

    def release(self) -> None:
        """
        Give back one slot taken by a successful try_acquire().

        Raises:
            CounterUnderflowError: If no slot is currently held.
        """
        with self._lock:
            if self._value <= 0:
                raise CounterUnderflowError("release() called with no slot held")
            self._value -= 1

    @contextmanager
    def slot(self) -> Iterator[bool]:
        """
        Context manager form of try_acquire()/release().

        Yields whether a slot was obtained; the slot (if any) is released
        when the block exits, however it exits.

            with counter.slot() as admitted:
                if not admitted:
                    return too_many_requests()
                ...
        """
        admitted = self.try_acquire()
        try:
            yield admitted
        finally:
            if admitted:
                self.release()

    @property
    def stats(self) -> dict:
        """Snapshot of the counter for logs and tests."""
        with self._lock:
            return {
                "in_flight": self._value,
                "limit": self._limit,
                "admitted": self._admitted,
                "rejected": self._rejected,
            }

    def __repr__(self) -> str:
        return f"InFlightCounter(value={self.value}, limit={self._limit})"
