"""Core library modules for TestHub."""

from testhub.lib.config import Settings, get_settings, load_settings
from testhub.lib.errors import (
    ConfigurationError,
    GitOperationError,
    PersistenceError,
    RepositoryListError,
    ShadowPersistenceError,
    SourceParseError,
    StartupCheckError,
    TestHubError,
)
from testhub.lib.logging import bind_context, clear_context, configure_logging, get_logger

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "configure_logging",
    "TestHubError",
    "ConfigurationError",
    "RepositoryListError",
    "GitOperationError",
    "SourceParseError",
    "PersistenceError",
    "ShadowPersistenceError",
    "StartupCheckError",
]
