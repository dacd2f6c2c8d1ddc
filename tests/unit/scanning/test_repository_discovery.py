"""Tests for repository and test source discovery on disk."""

from pathlib import Path


def _touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestFindRepositories:
    """Tests for find_repositories()."""

    def test_only_directories_with_git_metadata(self, tmp_path):
        """Should never return a directory without a .git folder."""
        from testhub.scanning.tree import find_repositories

        (tmp_path / "with-git" / ".git").mkdir(parents=True)
        _touch(tmp_path / "no-git" / "src" / "test" / "java" / "FooTest.java", "class FooTest {}")

        assert find_repositories(tmp_path) == [tmp_path / "with-git"]

    def test_nested_groups_and_no_descent(self, tmp_path):
        """Should find nested repositories without descending into a found one."""
        from testhub.scanning.tree import find_repositories

        (tmp_path / "team-a" / "svc-1" / ".git").mkdir(parents=True)
        (tmp_path / "team-a" / "svc-1" / "vendored" / ".git").mkdir(parents=True)
        (tmp_path / "team-b" / "svc-2" / ".git").mkdir(parents=True)

        assert find_repositories(tmp_path) == [
            tmp_path / "team-a" / "svc-1",
            tmp_path / "team-b" / "svc-2",
        ]

    def test_git_file_is_not_a_repository(self, tmp_path):
        """Should require .git to be a directory."""
        from testhub.scanning.tree import find_repositories

        _touch(tmp_path / "worktree" / ".git", "gitdir: /elsewhere")

        assert find_repositories(tmp_path) == []

    def test_filter_on_relative_path(self, tmp_path):
        """Should apply the filter to paths relative to the root."""
        from testhub.scanning.glob import PathFilter
        from testhub.scanning.tree import find_repositories

        (tmp_path / "core" / "api" / ".git").mkdir(parents=True)
        (tmp_path / "legacy" / "api" / ".git").mkdir(parents=True)

        found = find_repositories(tmp_path, PathFilter(exclude=["**/legacy/**"]))

        assert found == [tmp_path / "core" / "api"]

    def test_missing_root(self, tmp_path):
        """Should return nothing for a missing root."""
        from testhub.scanning.tree import find_repositories

        assert find_repositories(tmp_path / "missing") == []


class TestFindTestSources:
    """Tests for find_test_sources()."""

    def test_only_files_under_test_root(self, tmp_path):
        """Should keep .java files below src/test/java, in any module."""
        from testhub.scanning.tree import find_test_sources

        wanted = [
            _touch(tmp_path / "src" / "test" / "java" / "com" / "AppTest.java"),
            _touch(tmp_path / "module-a" / "src" / "test" / "java" / "ATest.java"),
        ]
        _touch(tmp_path / "src" / "main" / "java" / "App.java")
        _touch(tmp_path / "src" / "test" / "resources" / "DataTest.java")
        _touch(tmp_path / "src" / "test" / "java" / "notes.txt")
        _touch(tmp_path / ".git" / "src" / "test" / "java" / "Hidden.java")

        assert find_test_sources(tmp_path) == sorted(wanted)

    def test_custom_segments_and_extension(self, tmp_path):
        """Should honour configured segments and extension."""
        from testhub.scanning.tree import find_test_sources

        kotlin = _touch(tmp_path / "src" / "test" / "kotlin" / "AppTest.kt")
        _touch(tmp_path / "src" / "test" / "java" / "AppTest.java")

        assert find_test_sources(tmp_path, ("src", "test", "kotlin"), ".kt") == [kotlin]


class TestReadRemoteUrl:
    """Tests for read_remote_url()."""

    def test_reads_origin_url(self, java_repository):
        """Should read the origin URL from .git/config."""
        from testhub.scanning.tree import read_remote_url

        assert read_remote_url(java_repository) == "git@git.acme.io:auth/auth-service.git"

    def test_other_remote_and_missing(self, tmp_path):
        """Should select the named remote and return None when absent."""
        from testhub.scanning.tree import read_remote_url

        _touch(
            tmp_path / ".git" / "config",
            '[remote "upstream"]\n\turl = https://github.com/acme/up.git\n'
            '[branch "main"]\n\tremote = upstream\n',
        )

        assert read_remote_url(tmp_path, "upstream") == "https://github.com/acme/up.git"
        assert read_remote_url(tmp_path) is None
        assert read_remote_url(tmp_path / "nowhere") is None
