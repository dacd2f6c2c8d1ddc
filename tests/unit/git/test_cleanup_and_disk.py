"""Tests for repository removal and disk measurements."""

import os
import stat
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _read_only_repository(root):
    repo = root / "repo"
    objects = repo / ".git" / "objects" / "ab"
    objects.mkdir(parents=True)
    pack = objects / "cdef0123"
    pack.write_bytes(b"blob")
    (repo / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (repo / "src").mkdir()
    (repo / "src" / "App.java").write_text("class App {}")
    os.chmod(pack, stat.S_IRUSR)
    os.chmod(objects, stat.S_IRUSR | stat.S_IXUSR)
    return repo


class TestRemoveTree:
    """Tests for in-process removal."""

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_removes_read_only_git_objects(self, tmp_path):
        """Should normalize permissions and remove the whole tree."""
        from testhub.git.cleanup import remove_tree

        repo = _read_only_repository(tmp_path)

        assert remove_tree(repo)
        assert not repo.exists()

    def test_missing_path_is_removed(self, tmp_path):
        """Should report success for a path that does not exist."""
        from testhub.git.cleanup import remove_tree

        assert remove_tree(tmp_path / "missing")

    def test_remove_git_metadata_only(self, tmp_path):
        """Should remove .git and leave the working tree."""
        from testhub.git.cleanup import remove_git_metadata

        repo = tmp_path / "repo"
        (repo / ".git" / "refs" / "heads").mkdir(parents=True)
        (repo / ".git" / "config").write_text("[core]\n")
        (repo / "pom.xml").write_text("<project/>")

        assert remove_git_metadata(repo)
        assert not (repo / ".git").exists()
        assert (repo / "pom.xml").exists()

    def test_symlink_target_untouched(self, tmp_path):
        """Should unlink symlinks without following them."""
        from testhub.git.cleanup import remove_tree

        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.txt").write_text("keep")
        repo = tmp_path / "repo"
        repo.mkdir()
        try:
            (repo / "link").symlink_to(outside, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks not available")

        assert remove_tree(repo)
        assert (outside / "keep.txt").exists()


class TestForceRemove:
    """Tests for the OS-level forced removal."""

    @pytest.mark.asyncio
    async def test_runs_platform_command(self, tmp_path):
        """Should invoke the platform remove command with a timeout."""
        from testhub.git.cleanup import force_remove
        from testhub.git.runner import CommandResult

        target = tmp_path / "gone"
        with patch("testhub.git.cleanup.run_command", new=AsyncMock(return_value=CommandResult(0))) as mock_run:
            assert await force_remove(target, timeout=7)

        args = mock_run.call_args.args[0]
        assert str(target) in args
        assert mock_run.call_args.kwargs["timeout"] == 7

    @pytest.mark.asyncio
    async def test_reports_remaining_directory(self, tmp_path):
        """Should return False when the directory survives."""
        from testhub.git.cleanup import force_remove
        from testhub.git.runner import CommandResult

        target = tmp_path / "stuck"
        target.mkdir()
        with patch(
            "testhub.git.cleanup.run_command",
            new=AsyncMock(return_value=CommandResult(-1, timed_out=True)),
        ):
            assert not await force_remove(target)

    @pytest.mark.asyncio
    async def test_missing_command(self, tmp_path):
        """Should return False when the command cannot be started."""
        from testhub.git.cleanup import force_remove

        target = tmp_path / "stuck"
        target.mkdir()
        with patch("testhub.git.cleanup.run_command", new=AsyncMock(side_effect=FileNotFoundError("rm"))):
            assert not await force_remove(target)


class TestDiskMeasurements:
    """Tests for disk helpers."""

    def test_directory_size_sums_files(self, tmp_path):
        """Should sum regular file sizes recursively."""
        from testhub.git.disk import directory_size

        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "one.bin").write_bytes(b"x" * 10)
        (tmp_path / "two.bin").write_bytes(b"y" * 5)

        assert directory_size(tmp_path) == 15

    def test_directory_size_missing(self, tmp_path):
        """Should return the unknown sentinel for a missing path."""
        from testhub.git.disk import UNKNOWN_SIZE, directory_size

        assert directory_size(tmp_path / "missing") == UNKNOWN_SIZE

    def test_free_space_uses_existing_ancestor(self, tmp_path):
        """Should measure the nearest existing ancestor."""
        from testhub.git.disk import free_space

        assert free_space(tmp_path / "not" / "yet" / "created") > 0

    def test_free_space_unknown_on_error(self, tmp_path):
        """Should return the unknown sentinel when the OS call fails."""
        from testhub.git.disk import UNKNOWN_SIZE, free_space

        with patch("testhub.git.disk.shutil.disk_usage", MagicMock(side_effect=OSError("denied"))):
            assert free_space(tmp_path) == UNKNOWN_SIZE

    @pytest.mark.parametrize(
        "size,expected",
        [(-1, "unknown"), (512, "512 B"), (1536, "1.5 KB"), (3 * 1024**3, "3.0 GB")],
    )
    def test_format_size(self, size, expected):
        """Should render sizes with binary units."""
        from testhub.git.disk import format_size

        assert format_size(size) == expected
