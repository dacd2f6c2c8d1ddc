"""Resilient removal of cloned repositories.

Git object stores are frequently read-only, so removal goes in stages:
version-control metadata first, then a permission-normalizing walk of the
whole tree, and, as a last resort, the operating system's forced remove.
"""

import contextlib
import os
import stat
from pathlib import Path

from testhub.git.runner import run_command
from testhub.lib.logging import get_logger

logger = get_logger(__name__)

# Removed one by one before the rest of .git
GIT_METADATA_ENTRIES = (
    "index",
    "objects",
    "refs",
    "logs",
    "hooks",
    "info",
    "packed-refs",
    "HEAD",
    "FETCH_HEAD",
    "ORIG_HEAD",
    "config",
    "description",
)


def _force_writable(path: Path) -> None:
    # Failure surfaces on the following unlink/rmdir
    with contextlib.suppress(OSError):
        mode = os.lstat(path).st_mode
        if stat.S_ISLNK(mode):
            return
        extra = stat.S_IRUSR | stat.S_IWUSR
        if stat.S_ISDIR(mode):
            extra |= stat.S_IXUSR
        os.chmod(path, mode | extra)


def _normalize_permissions(root: Path) -> None:
    _force_writable(root)
    for dirpath, dirnames, _ in os.walk(root):
        for name in dirnames:
            _force_writable(Path(dirpath) / name)


def _walk_remove(root: Path) -> None:
    if root.is_symlink() or not root.is_dir():
        _force_writable(root.parent)
        root.unlink()
        return

    _normalize_permissions(root)
    for dirpath, dirnames, filenames in os.walk(root, topdown=False):
        current = Path(dirpath)
        for name in filenames:
            target = current / name
            _force_writable(target)
            target.unlink()
        for name in dirnames:
            target = current / name
            if target.is_symlink():
                target.unlink()
            else:
                target.rmdir()
    root.rmdir()


def remove_git_metadata(repo_path: Path) -> bool:
    """
    Remove the ``.git`` directory of a repository, known entries first.

    Args:
        repo_path: Repository working tree

    Returns:
        True if no ``.git`` directory remains
    """
    git_dir = repo_path / ".git"
    if not git_dir.exists():
        return True

    try:
        for name in GIT_METADATA_ENTRIES:
            entry = git_dir / name
            if entry.exists() or entry.is_symlink():
                _walk_remove(entry)
        _walk_remove(git_dir)
    except OSError as e:
        logger.warning("git_metadata_removal_failed", path=str(repo_path), error=str(e))
        return False
    return True


def remove_tree(path: Path) -> bool:
    """
    Remove a directory tree without invoking external programs.

    Args:
        path: Directory to remove

    Returns:
        True if the directory no longer exists
    """
    try:
        if not path.exists() and not path.is_symlink():
            return True
        remove_git_metadata(path)
        _walk_remove(path)
    except OSError as e:
        logger.warning("directory_walk_removal_failed", path=str(path), error=str(e))
        return False
    return True


async def force_remove(path: Path, timeout: float = 30) -> bool:
    """
    Remove a directory with the operating system's forced remove command.

    Args:
        path: Directory to remove
        timeout: Seconds before the command is killed

    Returns:
        True if the directory no longer exists
    """
    if os.name == "nt":
        args = ["cmd", "/c", "rmdir", "/s", "/q", str(path)]
    else:
        args = ["rm", "-rf", str(path)]

    try:
        result = await run_command(args, timeout=timeout)
    except OSError as e:
        logger.error("force_remove_unavailable", path=str(path), error=str(e))
        return False

    if not result.ok:
        logger.warning(
            "force_remove_failed",
            path=str(path),
            returncode=result.returncode,
            timed_out=result.timed_out,
            output=result.output[-500:],
        )
    return not path.exists()
