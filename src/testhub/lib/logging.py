"""Structured logging for the scan pipeline using structlog.

Events are snake_case names with keyword fields. Records go to stderr
(colored on a terminal, JSON lines otherwise) and, when a log directory is
configured, to a size-rotated file that always receives JSON lines.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Event fields whose values never reach a log record
SECRET_FIELDS = frozenset({"password", "git_password", "token", "secret", "credentials"})

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_structlog_configured = False
_handlers_installed = False


def _mask_secrets(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        _mask_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def _console_formatter() -> structlog.stdlib.ProcessorFormatter:
    if not sys.stderr.isatty():
        return _json_formatter()
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=True),
        ],
    )


def _build_handlers(level: int, log_dir: str | None) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(_console_formatter())
    handlers: list[logging.Handler] = [console]

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            directory / f"testhub_{datetime.now():%Y%m%d}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        rotating.setLevel(level)
        rotating.setFormatter(_json_formatter())
        handlers.append(rotating)
    return handlers


def _install_handlers(log_level: str | None, log_dir: str | None) -> None:
    global _handlers_installed

    level_name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    for handler in _build_handlers(level, log_dir or os.environ.get("LOG_DIR")):
        root.addHandler(handler)
    _handlers_installed = True


def _configure_structlog() -> None:
    global _structlog_configured
    if _structlog_configured:
        return

    # Rendering happens in each handler's ProcessorFormatter
    structlog.configure(
        processors=[*_shared_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _structlog_configured = True


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger, configuring logging on first use.

    Args:
        name: Logger name (typically __name__)
        **initial_context: Values bound to every event of this logger

    Returns:
        Bound structlog logger

    Example:
        >>> logger = get_logger(__name__, component="git")
        >>> logger.info("repository_cloned", path="/hub/billing-service")
    """
    _configure_structlog()
    if not _handlers_installed:
        _install_handlers(None, None)
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


def bind_context(**context: Any) -> None:
    """
    Bind run-scoped values included in every subsequent event.

    Example:
        >>> bind_context(scan_run_id="3f2a")
        >>> logger.info("repository_scanned")  # carries scan_run_id
    """
    structlog.contextvars.bind_contextvars(**context)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def configure_logging(log_level: str | None = None, log_dir: str | None = None) -> None:
    """
    Apply the level and log directory, replacing any earlier handlers.

    Loggers created before this call keep working and pick up the new
    level and destinations.

    Args:
        log_level: Level name, defaults to the LOG_LEVEL environment variable
        log_dir: Directory for rotating JSON log files, defaults to LOG_DIR
    """
    _configure_structlog()
    _install_handlers(log_level, log_dir)


__all__ = ["get_logger", "bind_context", "unbind_context", "clear_context", "configure_logging"]
