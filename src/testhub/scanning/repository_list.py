"""Reader for repository list files.

One target per line: ``gitUrl,teamName,teamCode[,active]``. Blank lines and
lines starting with ``#`` are ignored. Every malformed line is collected and
reported together before any scan work starts.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from testhub.lib.errors import ConfigurationError, RepositoryListError
from testhub.lib.logging import get_logger
from testhub.models.scan import RepositoryScanTarget
from testhub.scanning.glob import PathFilter

logger = get_logger(__name__)

VALID_URL_PREFIXES = ("https://", "http://", "git://", "ssh://", "git@")
KNOWN_GIT_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")

_ACTIVE_FLAGS = {
    "true": True,
    "yes": True,
    "y": True,
    "1": True,
    "active": True,
    "false": False,
    "no": False,
    "n": False,
    "0": False,
    "inactive": False,
}


def is_valid_git_url(url: str) -> bool:
    """True when ``url`` looks like something git can clone."""
    url = url.strip()
    if not url or any(char.isspace() for char in url):
        return False
    lowered = url.lower()
    return (
        lowered.startswith(VALID_URL_PREFIXES)
        or lowered.endswith(".git")
        or any(host in lowered for host in KNOWN_GIT_HOSTS)
    )


def _is_ignored(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def parse_repository_line(line: str) -> RepositoryScanTarget:
    """
    Parse one non-comment line.

    Args:
        line: ``gitUrl,teamName,teamCode[,active]``

    Returns:
        RepositoryScanTarget

    Raises:
        ValueError: With the reason the line is malformed
    """
    fields = [part.strip() for part in line.strip().split(",")]
    if len(fields) not in (3, 4):
        raise ValueError(f"expected 3 or 4 comma-separated fields, found {len(fields)}")

    url, team_name, team_code = fields[:3]
    if not is_valid_git_url(url):
        raise ValueError(f"not a git URL: {url!r}")
    if not team_name:
        raise ValueError("team name is empty")
    if not team_code:
        raise ValueError("team code is empty")

    active = True
    if len(fields) == 4:
        flag = fields[3].lower()
        if flag not in _ACTIVE_FLAGS:
            raise ValueError(f"unrecognized active flag: {fields[3]!r}")
        active = _ACTIVE_FLAGS[flag]

    return RepositoryScanTarget(url=url, team_name=team_name, team_code=team_code, active=active)


def parse_repository_list(text: str, source: str = "<input>") -> list[RepositoryScanTarget]:
    """
    Parse repository list content.

    Args:
        text: File content
        source: Label used in error messages

    Returns:
        Targets in file order

    Raises:
        RepositoryListError: If any line is malformed or a URL is listed twice
    """
    targets: list[RepositoryScanTarget] = []
    invalid: list[tuple[int, str, str]] = []
    seen: dict[str, int] = {}

    for number, line in enumerate(text.splitlines(), start=1):
        if _is_ignored(line):
            continue
        try:
            target = parse_repository_line(line)
        except ValueError as e:
            invalid.append((number, line, str(e)))
            continue
        if target.url in seen:
            invalid.append((number, line, f"duplicate of line {seen[target.url]}"))
            continue
        seen[target.url] = number
        targets.append(target)

    if invalid:
        for number, _, reason in invalid:
            logger.error("repository_list_invalid_line", source=source, line_number=number, reason=reason)
        raise RepositoryListError(source, invalid)

    logger.info("repository_list_loaded", source=source, targets=len(targets))
    return targets


def read_repository_list(path: Path) -> list[RepositoryScanTarget]:
    """
    Read and parse a repository list file.

    Raises:
        ConfigurationError: If the file cannot be read
        RepositoryListError: If any line is malformed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read repository list {path}: {e}",
            context={"path": str(path)},
        ) from e
    return parse_repository_list(text, source=str(path))


@dataclass(frozen=True)
class RepositoryListStatistics:
    """Line counts of a repository list."""

    total_lines: int
    empty_lines: int
    comment_lines: int
    valid_lines: int
    invalid_lines: int


def repository_list_statistics(text: str) -> RepositoryListStatistics:
    """Classify every line of repository list content without raising."""
    total = empty = comments = valid = invalid = 0
    for line in text.splitlines():
        total += 1
        stripped = line.strip()
        if not stripped:
            empty += 1
        elif stripped.startswith("#"):
            comments += 1
        else:
            try:
                parse_repository_line(line)
                valid += 1
            except ValueError:
                invalid += 1
    return RepositoryListStatistics(total, empty, comments, valid, invalid)


def filter_targets(
    targets: Iterable[RepositoryScanTarget], url_filter: PathFilter
) -> list[RepositoryScanTarget]:
    """Targets whose URL passes ``url_filter``."""
    return [target for target in targets if url_filter.matches(target.url)]
