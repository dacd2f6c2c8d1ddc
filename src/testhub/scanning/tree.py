"""Discovery of repository roots and test sources on disk."""

import os
import re
from collections.abc import Sequence
from pathlib import Path

from testhub.scanning.glob import PathFilter

GIT_DIR = ".git"
DEFAULT_TEST_SEGMENTS = ("src", "test", "java")
DEFAULT_EXTENSION = ".java"


def is_repository_root(path: Path) -> bool:
    """True when ``path`` directly contains a ``.git`` directory."""
    return (path / GIT_DIR).is_dir()


def find_repositories(root: Path, path_filter: PathFilter | None = None) -> list[Path]:
    """
    Find repository roots under ``root`` without descending into found repositories.

    Args:
        root: Directory to walk
        path_filter: Optional filter applied to paths relative to ``root``

    Returns:
        Sorted repository root paths
    """
    root = Path(root)
    if not root.is_dir():
        return []

    repositories = []
    for dirpath, dirnames, _ in os.walk(root):
        current = Path(dirpath)
        if GIT_DIR in dirnames and is_repository_root(current):
            dirnames[:] = []
            relative = current.relative_to(root).as_posix()
            if relative == ".":
                relative = root.name
            if path_filter is None or path_filter.matches(relative):
                repositories.append(current)
            continue
        dirnames.sort()
    return sorted(repositories)


def _contains_sequence(parts: Sequence[str], segments: Sequence[str]) -> bool:
    width = len(segments)
    return any(tuple(parts[i : i + width]) == tuple(segments) for i in range(len(parts) - width + 1))


def find_test_sources(
    repo_root: Path,
    segments: Sequence[str] = DEFAULT_TEST_SEGMENTS,
    extension: str = DEFAULT_EXTENSION,
) -> list[Path]:
    """
    Find source files below a conventional test source directory.

    Args:
        repo_root: Repository root
        segments: Consecutive directory names marking a test root, e.g. ``src/test/java``
        extension: Source file extension

    Returns:
        Sorted file paths
    """
    repo_root = Path(repo_root)
    sources = []
    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = sorted(name for name in dirnames if name != GIT_DIR)
        current = Path(dirpath)
        parts = current.relative_to(repo_root).parts
        if not _contains_sequence(parts, segments):
            continue
        sources.extend(current / name for name in filenames if name.endswith(extension))
    return sorted(sources)


_REMOTE_SECTION_RE = re.compile(r'^\s*\[remote\s+"(?P<name>[^"]+)"\]\s*$')
_SECTION_RE = re.compile(r"^\s*\[")
_URL_RE = re.compile(r"^\s*url\s*=\s*(?P<url>\S+)\s*$")


def read_remote_url(repo_path: Path, remote: str = "origin") -> str | None:
    """
    Read a remote URL from a repository's ``.git/config``.

    Args:
        repo_path: Repository working tree
        remote: Remote name

    Returns:
        The configured URL, or None when unavailable
    """
    config_path = Path(repo_path) / GIT_DIR / "config"
    try:
        lines = config_path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return None

    in_remote = False
    for line in lines:
        section = _REMOTE_SECTION_RE.match(line)
        if section:
            in_remote = section.group("name") == remote
            continue
        if _SECTION_RE.match(line):
            in_remote = False
            continue
        if in_remote:
            match = _URL_RE.match(line)
            if match:
                return match.group("url")
    return None
