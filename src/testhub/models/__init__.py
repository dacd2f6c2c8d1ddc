"""In-memory scan entities."""

from testhub.models.annotation import DEFAULT_STATUS, AnnotationMetadata
from testhub.models.scan import (
    FailureStage,
    RepositoryFailure,
    RepositoryScanTarget,
    ScanCredentials,
    ScanOutcome,
    ScanStatus,
)
from testhub.models.summary import TestCollectionSummary
from testhub.models.test_info import (
    RepositoryTestInfo,
    TestClassInfo,
    TestHelperClassInfo,
    TestMethodInfo,
    coverage_rate,
)

__all__ = [
    "AnnotationMetadata",
    "DEFAULT_STATUS",
    "FailureStage",
    "RepositoryFailure",
    "RepositoryScanTarget",
    "RepositoryTestInfo",
    "ScanCredentials",
    "ScanOutcome",
    "ScanStatus",
    "TestClassInfo",
    "TestCollectionSummary",
    "TestHelperClassInfo",
    "TestMethodInfo",
    "coverage_rate",
]
