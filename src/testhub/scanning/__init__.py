"""Repository discovery, filtering and test source scanning."""

from testhub.scanning.glob import GlobPattern, PathFilter, glob_to_regex
from testhub.scanning.repository_list import (
    RepositoryListStatistics,
    filter_targets,
    is_valid_git_url,
    parse_repository_line,
    parse_repository_list,
    read_repository_list,
    repository_list_statistics,
)
from testhub.scanning.repository_scanner import RepositoryScanner
from testhub.scanning.tree import (
    find_repositories,
    find_test_sources,
    is_repository_root,
    read_remote_url,
)

__all__ = [
    "GlobPattern",
    "PathFilter",
    "RepositoryListStatistics",
    "RepositoryScanner",
    "filter_targets",
    "find_repositories",
    "find_test_sources",
    "glob_to_regex",
    "is_repository_root",
    "is_valid_git_url",
    "parse_repository_line",
    "parse_repository_list",
    "read_remote_url",
    "read_repository_list",
    "repository_list_statistics",
]
