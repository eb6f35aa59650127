"""
SQL statement logging through SQLAlchemy engine events.
"""

import logging
import time
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine

SQL_PREFIX = "[sql]"

_START_KEY = "connhub_query_start"

sql_logger = logging.getLogger("connhub.sql")


def attach_sql_logger(engine: Engine, show_sql: bool = False, logger: Optional[logging.Logger] = None) -> None:
    """
    Log statements executed on ``engine`` with their latency.

    Successful statements are logged at INFO only when ``show_sql`` is set;
    failing statements are always logged at ERROR.
    """
    log = logger or sql_logger

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault(_START_KEY, []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        started = conn.info[_START_KEY].pop()
        if show_sql and log.isEnabledFor(logging.INFO):
            latency_ms = (time.perf_counter() - started) * 1000
            log.info(
                f"{SQL_PREFIX} {statement}",
                extra={"sql": statement, "params": repr(parameters), "latency_ms": round(latency_ms, 3)},
            )

    @event.listens_for(engine, "handle_error")
    def handle_error(exception_context):
        latency_ms = None
        conn = exception_context.connection
        if conn is not None and conn.info.get(_START_KEY):
            latency_ms = round((time.perf_counter() - conn.info[_START_KEY].pop()) * 1000, 3)
        log.error(
            f"{SQL_PREFIX} {exception_context.statement}",
            extra={
                "sql": exception_context.statement,
                "latency_ms": latency_ms,
                "error": str(exception_context.original_exception),
            },
        )
