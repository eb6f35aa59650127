"""
Named relational databases with health checks and transaction helpers.

Each instance is an ``EngineGroup`` (primary plus replicas). Sessions handed
out by ``new_session`` belong to the caller; ``session_scope`` and
``run_transaction`` manage begin/commit/rollback and always close the session.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..core.manager import BackendManager, BootOptions
from ..logger.sql import attach_sql_logger
from .config import DatabaseConfig, mask_url
from .engine import EngineGroup

logger = logging.getLogger(__name__)

R = TypeVar("R")

SyncFunc = Callable[[str, EngineGroup], None]


class DatabaseManager(BackendManager[DatabaseConfig, EngineGroup]):
    """
    Registry of named SQLAlchemy engine groups.

    Usage:
        manager = DatabaseManager(sync_func=lambda name, group: Base.metadata.create_all(group.primary))
        manager.boot_up({"default": DatabaseConfig(url="postgresql://app@localhost/app")})
        manager.run_transaction("default", lambda session: session.add(user))
    """

    kind = "database"

    def __init__(self, options: Optional[BootOptions] = None, sync_func: Optional[SyncFunc] = None):
        """
        Args:
            options: Startup behaviour shared with the other backends
            sync_func: Schema synchronisation hook run at boot for configs
                with ``synchronization`` enabled
        """
        super().__init__(options)
        self.sync_func = sync_func

    def _create_client(self, name: str, config: DatabaseConfig) -> EngineGroup:
        engines: List[Engine] = []
        try:
            for url in (config.url, *config.replicas):
                engine = create_engine(url, **config.engine_kwargs(url))
                attach_sql_logger(engine, show_sql=config.show_sql)
                engines.append(engine)
        except Exception:
            for engine in engines:
                engine.dispose()
            raise

        return EngineGroup(engines[0], engines[1:])

    def _ping(self, client: EngineGroup) -> None:
        client.ping()

    def _close(self, client: EngineGroup) -> None:
        client.dispose()

    def _prepare(self, name: str, config: DatabaseConfig, client: EngineGroup) -> None:
        if config.synchronization and self.sync_func is not None:
            self.sync_func(name, client)
            logger.info(f"database [{name}] schema synchronized")

    def _describe(self, config: DatabaseConfig) -> Dict[str, Any]:
        return {"url": mask_url(config.url), "replicas": len(config.replicas)}

    def new_session(self, name: str, read_only: bool = False) -> Session:
        """
        Get a new session for the instance ``name``; the caller must close it.

        Args:
            name: Registered instance name
            read_only: Bind the session to a replica instead of the primary

        Raises:
            InstanceNotFoundError: If ``name`` was never registered
        """
        return self.get_client(name).new_session(read_only=read_only)

    @contextmanager
    def session_scope(self, name: str) -> Iterator[Session]:
        """
        Get a session with automatic commit, rollback and cleanup.

        Usage:
            with manager.session_scope("default") as session:
                session.add(obj)

        Yields:
            Session bound to the primary, committed when the block exits cleanly
        """
        session = self.new_session(name)
        try:
            session.begin()
            yield session
            session.commit()
        except BaseException:
            self._rollback_quietly(name, session)
            raise
        finally:
            session.close()

    def run_transaction(self, name: str, work: Callable[[Session], R]) -> R:
        """
        Run ``work`` inside one transaction on the instance ``name``.

        The transaction is committed when ``work`` returns and rolled back when
        it raises. Exceptions from ``work`` or from the commit propagate
        unchanged. The session is closed on every exit path.

        Returns:
            Whatever ``work`` returned
        """
        with self.session_scope(name) as session:
            return work(session)

    def _rollback_quietly(self, name: str, session: Session) -> None:
        try:
            session.rollback()
        except Exception as e:
            logger.error(
                f"database [{name}] rollback failed: {e}",
                extra={"kind": self.kind, "instance": name, "error": str(e)},
            )
