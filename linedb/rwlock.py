"""
linedb/rwlock.py
ReadWriteLock: many concurrent readers or a single writer.

Writers that are waiting block new readers from entering, so a steady
stream of selects cannot starve an insert or update.
Use the context managers; never pair acquire/release by hand:

    with lock.read_locked():
        ...
    with lock.write_locked():
        ...
"""

from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Non-reentrant reader/writer lock built on a single Condition."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self._acquire_read()
        try:
            yield
        finally:
            self._release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self._acquire_write()
        try:
            yield
        finally:
            self._release_write()

    @property
    def readers(self) -> int:
        """Number of readers holding the lock; unsynchronized snapshot."""
        return self._readers

    @property
    def write_held(self) -> bool:
        """Whether a writer holds the lock; unsynchronized snapshot."""
        return self._writer

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def _release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def _acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            except BaseException:
                # Readers parked behind this writer must be woken up again.
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True

    def _release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()
