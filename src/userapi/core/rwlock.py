"""
=============================================================================
READERS-WRITER LOCK
=============================================================================

threading.Lock admits one thread at a time. For data that is read far more
often than it is written (the user table: every GET reads, only POST
writes) that serializes readers for no reason. A readers-writer lock
admits either

    - any number of readers at once, or
    - exactly one writer, with no readers,

never a mix.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHO MAY ENTER                                  │
    ├──────────────────────┬──────────────────────┬───────────────────────┤
    │ currently inside     │ new reader           │ new writer            │
    ├──────────────────────┼──────────────────────┼───────────────────────┤
    │ nobody               │ yes                  │ yes                   │
    │ readers              │ yes, unless a writer │ waits for readers     │
    │                      │ is already waiting   │ to drain              │
    │ a writer             │ waits                │ waits                 │
    └──────────────────────┴──────────────────────┴───────────────────────┘

Waiting writers block new readers ("writer preference"). Without that, a
steady stream of overlapping GETs could keep the reader count above zero
forever and a POST would never get in.

The lock is not reentrant: a thread holding the write lock must not ask
for the read lock (or the write lock) again.

Usage:
    lock = ReadWriteLock()

    with lock.read_lock():
        value = table.get(key)

    with lock.write_lock():
        table[key] = value

=============================================================================
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Writer-preferring readers-writer lock built on one Condition."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0            # threads inside read_lock()
        self._writer = False         # a thread is inside write_lock()
        self._waiting_writers = 0    # threads blocked in acquire_write()

    # ─────────────────────────────────────────────────────────────────────
    # READ SIDE
    # ─────────────────────────────────────────────────────────────────────

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() without matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    # ─────────────────────────────────────────────────────────────────────
    # WRITE SIDE
    # ─────────────────────────────────────────────────────────────────────

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            except BaseException:
                # Readers parked behind us must be woken if we give up
                self._waiting_writers -= 1
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() without matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    # ─────────────────────────────────────────────────────────────────────
    # CONTEXT MANAGERS
    # ─────────────────────────────────────────────────────────────────────

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Readers currently holding the lock (for tests and debugging)."""
        with self._cond:
            return self._readers

    @property
    def write_locked(self) -> bool:
        with self._cond:
            return self._writer
