"""
Logger construction: rotating file output plus a rich console output.

Every module of the package logs through ``logging.getLogger(__name__)``;
``setup_logging`` attaches the configured handlers to the ``connhub`` logger
so all of them share one destination. Structured fields are passed with
``extra={...}`` and rendered by structlog in the file output, as JSON lines
or as ``key=value`` text.
"""

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from .config import LogConfig

PACKAGE_LOGGER = "connhub"

_lock = threading.Lock()
_all_loggers: List[logging.Logger] = []
_default_logger: Optional[logging.Logger] = None


def build_file_formatter(fmt: str = "text") -> structlog.stdlib.ProcessorFormatter:
    """
    Formatter rendering standard library records through structlog.

    Args:
        fmt: ``json`` for one JSON object per line, ``text`` for plain
            console-style lines with ``key=value`` fields

    Returns:
        structlog.stdlib.ProcessorFormatter: Formatter for a file handler
    """
    if fmt == "json":
        timestamper = structlog.processors.TimeStamper(fmt="iso", key="ts")
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("msg"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        timestamper = structlog.processors.TimeStamper(fmt="iso")
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            timestamper,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )


def new_logger(config: LogConfig, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Configure the logger ``name`` from ``config``.

    Handlers already attached to that logger are closed and replaced, so
    calling this twice with the same name does not duplicate output.

    Args:
        config: Output levels, file rotation and format
        name: Logger name, the package logger by default

    Returns:
        logging.Logger: The configured logger
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    levels = [config.console_level]

    if config.filename:
        Path(config.filename).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.filename,
            maxBytes=config.max_size * 1024 * 1024,
            backupCount=config.max_backups,
            encoding="utf-8",
        )
        file_handler.setLevel(config.file_level)
        file_handler.setFormatter(build_file_formatter(config.format))
        logger.addHandler(file_handler)
        levels.append(config.file_level)

    console_handler = RichHandler(
        level=config.console_level,
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logger.addHandler(console_handler)

    logger.setLevel(min(levels))
    logger.propagate = False

    with _lock:
        if logger not in _all_loggers:
            _all_loggers.append(logger)

    return logger


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Configure the package logger and make it the default logger."""
    global _default_logger

    logger = new_logger(config or LogConfig())
    _default_logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the logger configured by ``setup_logging``.

    Raises:
        RuntimeError: If logging was never set up
    """
    if _default_logger is None:
        raise RuntimeError("Logging not initialized, call setup_logging first")
    return _default_logger


def get_all_loggers() -> List[logging.Logger]:
    with _lock:
        return list(_all_loggers)


def sync_all() -> None:
    """Flush every handler of every logger built by ``new_logger``."""
    for logger in get_all_loggers():
        for handler in logger.handlers:
            try:
                handler.flush()
            except Exception:
                # Stream may already be closed
                continue
