"""Git lifecycle management for repositories under a hub directory."""

from testhub.git.client import GitClient, SubprocessGitClient, build_git_env, redact_url
from testhub.git.disk import UNKNOWN_SIZE, directory_size, format_size, free_space
from testhub.git.manager import (
    GitRepositoryManager,
    GitResult,
    read_remote_url,
    repository_dir_name,
)
from testhub.git.runner import CommandResult, run_command

__all__ = [
    "CommandResult",
    "GitClient",
    "GitRepositoryManager",
    "GitResult",
    "SubprocessGitClient",
    "UNKNOWN_SIZE",
    "build_git_env",
    "directory_size",
    "format_size",
    "free_space",
    "read_remote_url",
    "redact_url",
    "repository_dir_name",
    "run_command",
]
