"""
Thread-safe name to client handle registry.

Registration is append-only and atomic with respect to duplicate detection.
Lookups and health-check enumeration share the lock; registration, removal and
shutdown take it exclusively.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Generic, Iterator, List, Tuple, TypeVar

from .errors import DuplicateInstanceError, InstanceNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadWriteLock:
    """
    Reader/writer lock with writer preference.

    Any number of readers may hold the lock at once. A waiting writer blocks
    new readers so that shutdown is not starved by a steady stream of lookups.
    """

    def __init__(self):
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
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class ClientRegistry(Generic[T]):
    """
    Mapping from instance name to a live client handle.

    The registry owns every handle from registration until ``close_all``.
    Callers borrow handles through ``get`` and must never close them.
    """

    def __init__(self, kind: str):
        """
        Args:
            kind: Backend label used in error and log messages (e.g. "mongo")
        """
        self.kind = kind
        self._lock = ReadWriteLock()
        self._clients: Dict[str, T] = {}

    def register(self, name: str, handle: T) -> None:
        """
        Add a fully connected handle under ``name``.

        Raises:
            DuplicateInstanceError: If ``name`` is already registered
        """
        with self._lock.write_locked():
            if name in self._clients:
                raise DuplicateInstanceError(self.kind, name)
            self._clients[name] = handle

    def get(self, name: str) -> T:
        """
        Look up the handle registered under ``name``.

        Raises:
            InstanceNotFoundError: If ``name`` was never registered
        """
        with self._lock.read_locked():
            try:
                return self._clients[name]
            except KeyError:
                raise InstanceNotFoundError(self.kind, name) from None

    def remove(self, name: str) -> T:
        """Remove and return the handle for ``name``."""
        with self._lock.write_locked():
            try:
                return self._clients.pop(name)
            except KeyError:
                raise InstanceNotFoundError(self.kind, name) from None

    def remove_all(self) -> List[Tuple[str, T]]:
        """Deregister every handle and return the removed (name, handle) pairs."""
        with self._lock.write_locked():
            removed = list(self._clients.items())
            self._clients.clear()
        return removed

    def snapshot(self) -> List[Tuple[str, T]]:
        """Copy of the current (name, handle) pairs, safe to iterate unlocked."""
        with self._lock.read_locked():
            return list(self._clients.items())

    def names(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._clients)

    def close_all(self, closer: Callable[[str, T], None]) -> int:
        """
        Close every registered handle while holding the lock exclusively.

        A failing close is logged and the remaining handles are still closed.
        Entries are kept in the map since this only runs at process teardown.

        Returns:
            int: Number of handles closed without error
        """
        closed = 0
        with self._lock.write_locked():
            for name, handle in self._clients.items():
                try:
                    closer(name, handle)
                    closed += 1
                except Exception as e:
                    logger.error(
                        f"Failed to close {self.kind} [{name}]: {e}",
                        extra={"kind": self.kind, "instance": name, "error": str(e)},
                    )
        return closed

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._clients

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._clients)

    def __repr__(self) -> str:
        return f"ClientRegistry(kind={self.kind}, names={self.names()})"
