"""Session-wide aggregation of repository scan results."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from testhub.models.test_info import RepositoryTestInfo, coverage_rate


@dataclass
class TestCollectionSummary:
    """Running totals for one scan session.

    ``add_repository`` is O(1): it adds the repository's own maintained
    totals and never re-walks classes or methods.
    """

    __test__ = False

    scan_directory: str
    scan_timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    _repositories: list[RepositoryTestInfo] = field(default_factory=list, init=False, repr=False)
    _total_repositories: int = field(default=0, init=False, repr=False)
    _total_test_classes: int = field(default=0, init=False, repr=False)
    _total_test_methods: int = field(default=0, init=False, repr=False)
    _total_annotated_test_methods: int = field(default=0, init=False, repr=False)

    @property
    def repositories(self) -> tuple[RepositoryTestInfo, ...]:
        return tuple(self._repositories)

    @property
    def total_repositories(self) -> int:
        return self._total_repositories

    @property
    def total_test_classes(self) -> int:
        return self._total_test_classes

    @property
    def total_test_methods(self) -> int:
        return self._total_test_methods

    @property
    def total_annotated_test_methods(self) -> int:
        return self._total_annotated_test_methods

    @property
    def coverage_rate(self) -> float:
        return coverage_rate(self._total_annotated_test_methods, self._total_test_methods)

    @property
    def team_codes(self) -> list[str]:
        """Distinct team codes in first-seen order."""
        return list(dict.fromkeys(repo.team_code for repo in self._repositories if repo.team_code))

    def add_repository(self, repository: RepositoryTestInfo) -> None:
        self._repositories.append(repository)
        self._total_repositories += 1
        self._total_test_classes += repository.total_test_classes
        self._total_test_methods += repository.total_test_methods
        self._total_annotated_test_methods += repository.total_annotated_test_methods

    def counts(self) -> dict[str, int]:
        """Rollup counters keyed by name."""
        return {
            "repositories": self._total_repositories,
            "test_classes": self._total_test_classes,
            "test_methods": self._total_test_methods,
            "annotated_test_methods": self._total_annotated_test_methods,
        }
