"""A spinning reader-writer lock with exponential backoff and timed acquisition."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class SpinPolicy:
    """How long a waiting thread spins before checking the lock again.

    Spin counts start at 1 and grow through :meth:`next_spins` until they reach
    the relevant maximum. Once a spin count exceeds ``yield_threshold`` the
    waiting thread also yields its time slice.
    """

    max_writer_wait_spins: int = 1024
    max_reader_wait_spins: int = 1024
    yield_threshold: int = 512

    def __post_init__(self) -> None:
        if self.max_writer_wait_spins < 1 or self.max_reader_wait_spins < 1:
            raise ValueError("maximum spin counts must be at least 1")
        if self.yield_threshold < 0:
            raise ValueError("yield threshold must not be negative")

    def next_spins(self, spins: int) -> int:
        """Return the spin count that follows ``spins`` (exponential backoff)."""
        return spins * 2

    def wait(self, spins: int) -> None:
        """Busy-wait for ``spins`` iterations, yielding the thread past the threshold."""
        for _ in range(spins):
            pass
        if spins > self.yield_threshold:
            time.sleep(0)


class SharedMutex:
    """A reader-writer lock: many concurrent readers or a single writer.

    Readers announce themselves by incrementing a counter and back off while a
    writer holds the lock. A writer first claims the writer flag, which stops
    new readers, then waits for active readers to drain.

    Deadlines for the timed operations are values of :func:`time.monotonic`.
    """

    def __init__(self, policy: Optional[SpinPolicy] = None) -> None:
        self._policy = policy if policy is not None else SpinPolicy()
        self._atomic = threading.Lock()
        self._reader_count = 0
        self._writer_locked = False

    # -- primitive atomic operations -------------------------------------

    def _add_reader(self) -> None:
        with self._atomic:
            self._reader_count += 1

    def _remove_reader(self) -> None:
        with self._atomic:
            self._reader_count -= 1

    def _claim_writer(self) -> bool:
        with self._atomic:
            if self._writer_locked:
                return False
            self._writer_locked = True
            return True

    def _release_writer(self) -> None:
        with self._atomic:
            self._writer_locked = False

    def _backoff(self, spins: int, limit: int) -> int:
        self._policy.wait(spins)
        if spins < limit:
            spins = self._policy.next_spins(spins)
        return spins

    # -- state -------------------------------------------------------------

    @property
    def policy(self) -> SpinPolicy:
        return self._policy

    @property
    def reader_count(self) -> int:
        """Number of readers currently registered."""
        return self._reader_count

    @property
    def writer_locked(self) -> bool:
        """Whether a writer has claimed the lock."""
        return self._writer_locked

    # -- shared (reader) side -------------------------------------------

    def lock_shared(self) -> None:
        """Block until shared access is acquired."""
        limit = self._policy.max_writer_wait_spins
        spins = 1
        while True:
            while self._writer_locked:
                spins = self._backoff(spins, limit)
            self._add_reader()
            if not self._writer_locked:
                return
            self._remove_reader()

    def try_lock_shared(self) -> bool:
        """Acquire shared access without waiting; return whether it succeeded."""
        if self._writer_locked:
            return False
        self._add_reader()
        if self._writer_locked:
            self._remove_reader()
            return False
        return True

    def timed_lock_shared(self, deadline: float) -> bool:
        """Try to acquire shared access until ``deadline``; return whether it succeeded."""
        limit = self._policy.max_writer_wait_spins
        spins = 1
        while time.monotonic() < deadline:
            if self._writer_locked:
                spins = self._backoff(spins, limit)
                continue
            self._add_reader()
            if not self._writer_locked:
                return True
            self._remove_reader()
            spins = self._backoff(spins, limit)
        return False

    def unlock_shared(self) -> None:
        """Release shared access."""
        with self._atomic:
            if self._reader_count <= 0:
                raise RuntimeError("unlock_shared called without a shared lock held")
            self._reader_count -= 1

    # -- exclusive (writer) side ----------------------------------------

    def lock_exclusive(self) -> None:
        """Block until exclusive access is acquired."""
        limit = self._policy.max_reader_wait_spins
        spins = 1
        while not self._claim_writer():
            spins = self._backoff(spins, limit)
        spins = 1
        while self._reader_count > 0:
            spins = self._backoff(spins, limit)

    def try_lock_exclusive(self) -> bool:
        """Acquire exclusive access without waiting; return whether it succeeded."""
        if not self._claim_writer():
            return False
        if self._reader_count > 0:
            self._release_writer()
            return False
        return True

    def timed_lock_exclusive(self, deadline: float) -> bool:
        """Try to acquire exclusive access until ``deadline``; return whether it succeeded."""
        limit = self._policy.max_reader_wait_spins
        spins = 1
        while not self._claim_writer():
            if time.monotonic() >= deadline:
                return False
            spins = self._backoff(spins, limit)
        while self._reader_count > 0:
            if time.monotonic() >= deadline:
                self._release_writer()
                return False
            spins = self._backoff(spins, limit)
        return True

    def unlock_exclusive(self) -> None:
        """Release exclusive access."""
        with self._atomic:
            if not self._writer_locked:
                raise RuntimeError("unlock_exclusive called without an exclusive lock held")
            self._writer_locked = False

    # -- context managers -----------------------------------------------

    @contextmanager
    def shared(self) -> Iterator["SharedMutex"]:
        """Hold shared access for the duration of a ``with`` block."""
        self.lock_shared()
        try:
            yield self
        finally:
            self.unlock_shared()

    @contextmanager
    def exclusive(self) -> Iterator["SharedMutex"]:
        """Hold exclusive access for the duration of a ``with`` block."""
        self.lock_exclusive()
        try:
            yield self
        finally:
            self.unlock_exclusive()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(reader_count={self._reader_count}, "
            f"writer_locked={self._writer_locked})"
        )