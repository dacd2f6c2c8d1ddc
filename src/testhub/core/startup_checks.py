"""Preconditions verified before a scan starts."""

import os
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from testhub.git.runner import run_command
from testhub.lib.database import check_connection_health
from testhub.lib.errors import StartupCheckError
from testhub.lib.logging import get_logger

logger = get_logger(__name__)

# Startup check timeout (seconds)
STARTUP_TIMEOUT = 10


async def check_git_available(executable: str = "git", timeout: float = STARTUP_TIMEOUT) -> str:
    """
    Verify the git executable can be run.

    Returns:
        The reported git version

    Raises:
        StartupCheckError: If git is missing or does not answer
    """
    try:
        result = await run_command([executable, "--version"], timeout=timeout)
    except OSError as e:
        raise StartupCheckError("git", f"git executable not available: {e}") from e
    if not result.ok:
        raise StartupCheckError("git", f"git --version failed: {result.output or result.returncode}")
    version = result.stdout.strip()
    logger.info("git_available", version=version)
    return version


def check_hub_directory(hub_directory: Path) -> None:
    """
    Create the hub directory if needed and verify it is writable.

    Raises:
        StartupCheckError: If the directory cannot be created or written
    """
    try:
        hub_directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StartupCheckError("hub_directory", f"Cannot create hub directory {hub_directory}: {e}") from e
    if not os.access(hub_directory, os.W_OK | os.X_OK):
        raise StartupCheckError("hub_directory", f"Hub directory is not writable: {hub_directory}")


async def check_database(session_factory: async_sessionmaker[AsyncSession], store: str = "primary") -> None:
    """
    Verify a store accepts connections.

    Raises:
        StartupCheckError: If the store is unreachable
    """
    if not await check_connection_health(session_factory):
        raise StartupCheckError("database", f"The {store} database is not reachable")


async def run_all_startup_checks(
    hub_directory: Path,
    session_factories: dict[str, async_sessionmaker[AsyncSession]],
    git_executable: str = "git",
) -> None:
    """
    Run every startup check, stopping at the first failure.

    Args:
        hub_directory: Directory repositories are cloned into
        session_factories: Store name to session factory
        git_executable: git program to probe

    Raises:
        StartupCheckError: On the first failed check
    """
    logger.info("startup_checks_begin")
    await check_git_available(git_executable)
    check_hub_directory(hub_directory)
    for store, factory in session_factories.items():
        await check_database(factory, store)
    logger.info("startup_checks_passed")
