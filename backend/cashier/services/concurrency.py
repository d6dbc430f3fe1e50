# Overview: Locking primitives shared by the storage backends.

from __future__ import annotations

import threading
import time
from contextlib import contextmanager

from sqlalchemy import text


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, see begin_write_transaction.
    """
    return query.with_for_update()


def begin_write_transaction(session) -> None:
    """
    Open the session's transaction with write intent.

    SQLite has no row locks, so the whole database write lock is taken up
    front with BEGIN IMMEDIATE; concurrent writers then wait (busy timeout)
    instead of reading stale stock. Other dialects rely on FOR UPDATE.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


class LockTimeout(Exception):
    """Raised when a ReadWriteLock cannot be acquired before the deadline."""


class ReadWriteLock:
    """
    Shared/exclusive lock for in-process stores.

    Readers share the lock; a writer excludes readers and other writers.
    Waiting writers block new readers so checkouts are not starved by a
    stream of catalog reads.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @staticmethod
    def _remaining(deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - time.monotonic()

    def acquire_read(self, deadline: float | None = None) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                remaining = self._remaining(deadline)
                if remaining is not None and remaining <= 0:
                    raise LockTimeout("timed out waiting for read lock")
                self._cond.wait(remaining)
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, deadline: float | None = None) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    remaining = self._remaining(deadline)
                    if remaining is not None and remaining <= 0:
                        raise LockTimeout("timed out waiting for write lock")
                    self._cond.wait(remaining)
            finally:
                self._writers_waiting -= 1
                if not self._writers_waiting:
                    self._cond.notify_all()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
