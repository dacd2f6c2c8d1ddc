"""Repository lifecycle under a hub directory: clone, update, delete, measure."""

import asyncio
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from testhub.git.client import GitClient, SubprocessGitClient, redact_url
from testhub.git.disk import UNKNOWN_SIZE, directory_size, free_space
from testhub.lib.config import Settings
from testhub.lib.errors import GitOperationError
from testhub.lib.logging import get_logger
from testhub.models.scan import ScanCredentials
from testhub.scanning.tree import find_repositories, read_remote_url

logger = get_logger(__name__)

# Fresh clone, then one clean-and-reclone
CLONE_ATTEMPTS = 2


def repository_dir_name(url: str) -> str:
    """
    Derive the local directory name of a repository from its URL.

    SSH shorthand keeps the whole path after ``:`` (``git@host:group/repo.git``
    becomes ``group/repo``); other URLs use their last path segment. A
    trailing ``.git`` is dropped.

    Args:
        url: Repository URL

    Returns:
        Relative directory path

    Raises:
        ValueError: If no safe directory name can be derived
    """
    cleaned = url.strip().rstrip("/")
    if "://" not in cleaned and ":" in cleaned:
        name = cleaned.split(":", 1)[1]
    else:
        name = cleaned.rsplit("/", 1)[-1]
    name = name.removesuffix(".git").strip("/")

    parts = PurePosixPath(name).parts
    if not name or any(part in ("", ".", "..") for part in parts):
        raise ValueError(f"Cannot derive a repository directory from URL: {redact_url(url)}")
    return name


@dataclass(frozen=True)
class GitResult:
    """Outcome of a clone-or-update.

    Attributes:
        url: Repository URL
        success: True when ``path`` holds an up-to-date working tree
        path: Local working tree
        action: ``cloned``, ``recloned`` or ``updated`` on success, the failed step otherwise
        error: Failure message
    """

    url: str
    success: bool
    path: Path | None = None
    action: str = ""
    error: str | None = None


class GitRepositoryManager:
    """
    Clone, update and delete repositories under a hub directory.

    Example:
        >>> manager = GitRepositoryManager(Path("/data/hub"))
        >>> result = await manager.clone_or_update("git@git.acme.io:payments/ledger.git")
        >>> result.path
        PosixPath('/data/hub/payments/ledger')
    """

    def __init__(
        self,
        hub_directory: Path,
        client: GitClient | None = None,
        target_branch: str | None = None,
        clone_attempts: int = CLONE_ATTEMPTS,
    ):
        self.hub_directory = Path(hub_directory)
        self._client: GitClient = client or SubprocessGitClient()
        self._target_branch = target_branch
        self._clone_attempts = clone_attempts

    @classmethod
    def from_settings(
        cls,
        hub_directory: Path,
        settings: Settings,
        credentials: ScanCredentials | None = None,
    ) -> "GitRepositoryManager":
        """Build a manager with a subprocess client configured from settings."""
        if credentials is None and (
            settings.git_ssh_key_path or (settings.git_username and settings.git_password)
        ):
            credentials = ScanCredentials(
                username=settings.git_username,
                password=settings.git_password,
                ssh_key_path=settings.git_ssh_key_path,
            )
        client = SubprocessGitClient(
            credentials=credentials,
            timeout_seconds=settings.git_timeout_seconds,
            force_remove_timeout_seconds=settings.git_force_remove_timeout_seconds,
        )
        return cls(hub_directory, client=client, target_branch=settings.git_target_branch)

    def ensure_hub(self) -> None:
        """Create the hub directory if it does not exist."""
        self.hub_directory.mkdir(parents=True, exist_ok=True)

    def repository_path(self, url: str) -> Path:
        return self.hub_directory / repository_dir_name(url)

    async def clone_or_update(self, url: str) -> GitResult:
        """
        Make the working tree of ``url`` current.

        An existing repository is updated in place; a failed update leaves it
        untouched and reports failure. A missing or non-repository directory
        gets a fresh clone, cleaned and retried once on failure.

        Args:
            url: Repository URL

        Returns:
            GitResult describing the outcome (never raises for git or
            file-system failures)
        """
        try:
            path = self.repository_path(url)
        except ValueError as e:
            return GitResult(url=url, success=False, action="resolve", error=str(e))

        try:
            return await self._clone_or_update(url, path)
        except OSError as e:
            logger.error("repository_filesystem_error", url=redact_url(url), path=str(path), error=str(e))
            return GitResult(url=url, success=False, path=path, action="filesystem", error=str(e))

    async def _clone_or_update(self, url: str, path: Path) -> GitResult:
        safe_url = redact_url(url)
        if (path / ".git").exists():
            try:
                await self._update(path)
            except GitOperationError as e:
                logger.error("repository_update_failed", url=safe_url, path=str(path), error=e.message)
                return GitResult(url=url, success=False, path=path, action="update", error=e.message)
            logger.info("repository_updated", url=safe_url, path=str(path))
            return GitResult(url=url, success=True, path=path, action="updated")

        stale = path.exists()
        if stale:
            logger.warning("stale_directory_found", url=safe_url, path=str(path))

        attempts = 0
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._clone_attempts),
                retry=retry_if_exception_type(GitOperationError),
                before_sleep=self._log_clone_retry,
                reraise=True,
            ):
                with attempt:
                    attempts += 1
                    await self._clone_fresh(url, path)
        except GitOperationError as e:
            logger.error(
                "repository_clone_failed",
                url=safe_url,
                path=str(path),
                attempts=attempts,
                error=e.message,
            )
            return GitResult(url=url, success=False, path=path, action="clone", error=e.message)

        action = "recloned" if stale or attempts > 1 else "cloned"
        logger.info("repository_cloned", url=safe_url, path=str(path), action=action)
        return GitResult(url=url, success=True, path=path, action=action)

    async def _update(self, path: Path) -> None:
        if self._target_branch:
            await self._client.fetch(path, self._target_branch)
            await self._client.checkout(path, self._target_branch)
            await self._client.pull(path, self._target_branch)
        else:
            await self._client.pull(path)

    async def _clone_fresh(self, url: str, path: Path) -> None:
        if path.exists() and not await self._client.delete_worktree(path):
            raise GitOperationError("clean", f"Could not clean directory {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GitOperationError("clone", f"Cannot create {path.parent}: {e}") from e
        await self._client.clone(url, path, self._target_branch)

    @staticmethod
    def _log_clone_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "repository_clone_retry",
            attempt=retry_state.attempt_number,
            error=getattr(error, "message", str(error)),
        )

    async def delete(self, url: str) -> bool:
        """
        Delete the working tree of ``url``.

        Args:
            url: Repository URL

        Returns:
            True when the directory is gone (including when it never existed);
            False when it is not a repository or could not be removed
        """
        try:
            path = self.repository_path(url)
        except ValueError as e:
            logger.error("repository_delete_failed", error=str(e))
            return False

        try:
            if not path.exists():
                return True
            if not (path / ".git").exists():
                logger.warning("delete_refused_not_a_repository", path=str(path))
                return False
            deleted = await self._client.delete_worktree(path)
        except OSError as e:
            logger.error("repository_delete_failed", url=redact_url(url), path=str(path), error=str(e))
            return False

        if deleted:
            logger.info("repository_deleted", url=redact_url(url), path=str(path))
        else:
            logger.error("repository_delete_failed", url=redact_url(url), path=str(path))
        return deleted

    def available_disk_space(self) -> int:
        """Free bytes on the hub volume, or -1 when unknown."""
        return free_space(self.hub_directory)

    def disk_usage(self) -> int:
        """Bytes used by repositories under the hub, or -1 when unknown."""
        if not self.hub_directory.exists():
            return 0
        return directory_size(self.hub_directory)

    def list_repository_paths(self) -> list[Path]:
        """Repository roots currently present under the hub."""
        if not self.hub_directory.is_dir():
            return []
        return find_repositories(self.hub_directory)

    def disk_usage_report(self) -> dict[str, int]:
        """Size in bytes per repository, keyed by path relative to the hub."""
        report = {}
        for repo_path in self.list_repository_paths():
            relative = repo_path.relative_to(self.hub_directory).as_posix()
            report[relative] = directory_size(repo_path)
        return report

    async def measure(self) -> tuple[int, int]:
        """Free space and hub usage, computed off the event loop."""
        free = await asyncio.to_thread(self.available_disk_space)
        used = await asyncio.to_thread(self.disk_usage)
        return free, used


__all__ = [
    "CLONE_ATTEMPTS",
    "GitResult",
    "GitRepositoryManager",
    "UNKNOWN_SIZE",
    "read_remote_url",
    "repository_dir_name",
]
