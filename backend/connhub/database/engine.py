"""
Primary/replica engine group used as the relational client handle.
"""

import itertools
import threading
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session


class EngineGroup:
    """
    One primary engine plus any number of read replicas.

    Writes and transactions always go to the primary. ``replica()`` hands out
    replicas round-robin and falls back to the primary when none exist.
    """

    def __init__(self, primary: Engine, replicas: Sequence[Engine] = ()):
        self.primary = primary
        self.replicas: List[Engine] = list(replicas)
        self._replica_cycle: Optional[Iterator[Engine]] = (
            itertools.cycle(self.replicas) if self.replicas else None
        )
        self._cycle_lock = threading.Lock()
        self.session_factory = sessionmaker(
            bind=primary,
            autoflush=False,
            expire_on_commit=False,  # Keep objects accessible after commit
        )

    @property
    def engines(self) -> List[Engine]:
        return [self.primary, *self.replicas]

    def replica(self) -> Engine:
        if self._replica_cycle is None:
            return self.primary
        with self._cycle_lock:
            return next(self._replica_cycle)

    def new_session(self, read_only: bool = False) -> Session:
        """New session bound to the primary, or to a replica when ``read_only``."""
        if read_only:
            return self.session_factory(bind=self.replica())
        return self.session_factory()

    def ping(self) -> None:
        """Run ``SELECT 1`` on every engine; raises on the first failure."""
        for engine in self.engines:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        """Close the connection pools of every engine."""
        for engine in self.engines:
            engine.dispose()

    def __repr__(self) -> str:
        return f"EngineGroup(primary={self.primary!r}, replicas={len(self.replicas)})"
