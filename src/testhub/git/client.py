"""Git executable boundary.

Credentials reach git through the process environment only: HTTPS
credentials through an inline credential helper reading ``GIT_USERNAME`` /
``GIT_PASSWORD``, SSH keys through ``GIT_SSH_COMMAND``. Command lines and
logs never contain secrets.
"""

import asyncio
import os
import re
import shlex
from pathlib import Path
from typing import Protocol

from testhub.git.cleanup import force_remove, remove_tree
from testhub.git.runner import CommandResult, run_command
from testhub.lib.errors import GitOperationError
from testhub.lib.logging import get_logger
from testhub.models.scan import ScanCredentials

logger = get_logger(__name__)

_CREDENTIAL_HELPER = '!f() { echo "username=${GIT_USERNAME}"; echo "password=${GIT_PASSWORD}"; }; f'
_USERINFO_RE = re.compile(r"(?<=://)[^/@\s]+@")


def redact_url(url: str) -> str:
    """Drop any ``user:password@`` part of a URL before it is logged."""
    return _USERINFO_RE.sub("***@", url)


class GitClient(Protocol):
    """Operations the repository manager needs from git."""

    async def clone(self, url: str, destination: Path, branch: str | None = None) -> None: ...

    async def fetch(self, repo_path: Path, branch: str) -> None: ...

    async def checkout(self, repo_path: Path, branch: str) -> None: ...

    async def pull(self, repo_path: Path, branch: str | None = None) -> None: ...

    async def delete_worktree(self, repo_path: Path) -> bool: ...


def build_git_env(
    credentials: ScanCredentials | None,
    base: dict[str, str] | None = None,
) -> dict[str, str]:
    """
    Environment for a git process.

    Args:
        credentials: Optional HTTPS or SSH credentials
        base: Starting environment (current process environment when None)

    Returns:
        Environment mapping with prompts disabled and credentials wired in
    """
    env = dict(os.environ if base is None else base)
    env["GIT_TERMINAL_PROMPT"] = "0"
    if credentials is None:
        return env

    if credentials.ssh_key_path:
        key = shlex.quote(credentials.ssh_key_path)
        env["GIT_SSH_COMMAND"] = (
            f"ssh -i {key} -o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null"
        )

    if credentials.username and credentials.password:
        env["GIT_USERNAME"] = credentials.username
        env["GIT_PASSWORD"] = credentials.password
        # Reset inherited helpers, then install the env-reading helper
        env["GIT_CONFIG_COUNT"] = "2"
        env["GIT_CONFIG_KEY_0"] = "credential.helper"
        env["GIT_CONFIG_VALUE_0"] = ""
        env["GIT_CONFIG_KEY_1"] = "credential.helper"
        env["GIT_CONFIG_VALUE_1"] = _CREDENTIAL_HELPER
    return env


class SubprocessGitClient:
    """GitClient running the ``git`` executable with a bounded timeout."""

    def __init__(
        self,
        credentials: ScanCredentials | None = None,
        timeout_seconds: float = 300,
        force_remove_timeout_seconds: float = 30,
        executable: str = "git",
    ):
        self._credentials = credentials
        self._timeout = timeout_seconds
        self._force_remove_timeout = force_remove_timeout_seconds
        self._executable = executable

    async def _run(self, operation: str, args: list[str], cwd: Path | None) -> CommandResult:
        command = [self._executable, *args]
        logger.debug(
            "git_command",
            operation=operation,
            args=[redact_url(arg) for arg in args],
            cwd=str(cwd) if cwd else None,
        )
        try:
            result = await run_command(
                command,
                cwd=cwd,
                env=build_git_env(self._credentials),
                timeout=self._timeout,
            )
        except OSError as e:
            raise GitOperationError(operation, f"git could not be started: {e}") from e

        if result.timed_out:
            raise GitOperationError(
                operation,
                f"git {operation} timed out after {self._timeout}s",
                timed_out=True,
            )
        if result.returncode != 0:
            detail = redact_url(result.output.strip()[-500:]) or f"exit code {result.returncode}"
            raise GitOperationError(
                operation,
                f"git {operation} failed: {detail}",
                context={"returncode": result.returncode},
            )
        return result

    async def clone(self, url: str, destination: Path, branch: str | None = None) -> None:
        args = ["clone"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        args += [url, str(destination)]
        await self._run("clone", args, cwd=destination.parent)

    async def fetch(self, repo_path: Path, branch: str) -> None:
        await self._run("fetch", ["fetch", "origin", branch], cwd=repo_path)

    async def checkout(self, repo_path: Path, branch: str) -> None:
        try:
            await self._run("checkout", ["checkout", branch], cwd=repo_path)
        except GitOperationError:
            # Local branch missing: create it tracking the fetched remote branch
            await self._run("checkout", ["checkout", "-B", branch, f"origin/{branch}"], cwd=repo_path)

    async def pull(self, repo_path: Path, branch: str | None = None) -> None:
        args = ["pull", "origin", branch] if branch else ["pull"]
        await self._run("pull", args, cwd=repo_path)

    async def delete_worktree(self, repo_path: Path) -> bool:
        if await asyncio.to_thread(remove_tree, repo_path):
            return True
        logger.warning("falling_back_to_force_remove", path=str(repo_path))
        return await force_remove(repo_path, timeout=self._force_remove_timeout)
