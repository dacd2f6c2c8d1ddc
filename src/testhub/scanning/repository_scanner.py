"""Scan one repository's test sources into a RepositoryTestInfo."""

from collections.abc import Sequence
from pathlib import Path

from testhub.extraction.extractors import ExtractorRegistry
from testhub.extraction.parser import JavaTestParser
from testhub.lib.config import Settings
from testhub.lib.errors import SourceParseError
from testhub.lib.logging import get_logger
from testhub.models.scan import RepositoryScanTarget
from testhub.models.summary import TestCollectionSummary
from testhub.models.test_info import RepositoryTestInfo
from testhub.scanning.glob import PathFilter
from testhub.scanning.tree import (
    DEFAULT_EXTENSION,
    DEFAULT_TEST_SEGMENTS,
    find_repositories,
    find_test_sources,
    read_remote_url,
)

logger = get_logger(__name__)


class RepositoryScanner:
    """
    Walk a repository's test sources and collect its test classes.

    Files that fail to parse are logged and skipped. A test class is kept
    only when it has at least one test method; helper classes are always kept.
    """

    def __init__(
        self,
        registry: ExtractorRegistry | None = None,
        test_source_segments: Sequence[str] = DEFAULT_TEST_SEGMENTS,
        source_extension: str = DEFAULT_EXTENSION,
    ):
        self._registry = registry
        self.test_source_segments = tuple(test_source_segments)
        self.source_extension = source_extension

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: ExtractorRegistry | None = None
    ) -> "RepositoryScanner":
        return cls(
            registry=registry,
            test_source_segments=settings.test_source_segments,
            source_extension=settings.source_extension,
        )

    def scan(
        self,
        repo_path: Path,
        target: RepositoryScanTarget | None = None,
        git_url: str | None = None,
    ) -> RepositoryTestInfo:
        """
        Scan a repository working tree.

        Args:
            repo_path: Repository root
            target: Target supplying URL and team ownership
            git_url: URL to record when no target is given

        Returns:
            RepositoryTestInfo for the repository
        """
        repo_path = Path(repo_path)
        repository = RepositoryTestInfo(
            repository_name=repo_path.name,
            repository_path=str(repo_path),
            git_url=target.url if target else (git_url or ""),
            team_name=target.team_name if target else "",
            team_code=target.team_code if target else "",
        )

        # One parser per scan: tree-sitter parsers must not be shared across threads
        parser = JavaTestParser(self._registry)
        sources = find_test_sources(repo_path, self.test_source_segments, self.source_extension)
        failed_files = 0
        rejected_files = 0
        for source in sources:
            relative = source.relative_to(repo_path).as_posix()
            try:
                result = parser.parse_file(source, recorded_path=relative)
            except SourceParseError as e:
                failed_files += 1
                logger.warning("source_parse_failed", repository=repository.repository_name, error=e.message)
                continue
            except (ValueError, RecursionError, UnicodeError) as e:
                failed_files += 1
                logger.warning(
                    "source_parse_failed",
                    repository=repository.repository_name,
                    file_path=relative,
                    error=str(e),
                )
                continue

            if not result.valid:
                rejected_files += 1
            if result.test_class is not None and result.test_class.total_test_methods > 0:
                repository.add_test_class(result.test_class)
            for helper in result.helper_classes:
                repository.add_helper_class(helper)

        logger.info(
            "repository_scanned",
            repository=repository.repository_name,
            source_files=len(sources),
            failed_files=failed_files,
            rejected_files=rejected_files,
            test_classes=repository.total_test_classes,
            test_methods=repository.total_test_methods,
            annotated_methods=repository.total_annotated_test_methods,
        )
        return repository

    def scan_directory(
        self, root: Path, path_filter: PathFilter | None = None
    ) -> TestCollectionSummary:
        """
        Scan every repository found under ``root`` (no git operations).

        Repository URLs are read from each repository's ``origin`` remote.

        Args:
            root: Directory holding repositories
            path_filter: Optional include/exclude filter on relative repository paths

        Returns:
            Summary holding every repository with at least one test class
        """
        summary = TestCollectionSummary(scan_directory=str(root))
        for repo_path in find_repositories(Path(root), path_filter):
            repository = self.scan(repo_path, git_url=read_remote_url(repo_path))
            if repository.total_test_classes > 0:
                summary.add_repository(repository)
        return summary
