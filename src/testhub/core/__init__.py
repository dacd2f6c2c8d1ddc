"""Scan orchestration, persistence and startup checks."""

from testhub.core.orchestrator import ReportCallback, ScanOrchestrator, run_full_scan
from testhub.core.persistence import Duration, PersistenceCoordinator, PersistResult
from testhub.core.startup_checks import (
    check_database,
    check_git_available,
    check_hub_directory,
    run_all_startup_checks,
)

__all__ = [
    "Duration",
    "PersistResult",
    "PersistenceCoordinator",
    "ReportCallback",
    "ScanOrchestrator",
    "check_database",
    "check_git_available",
    "check_hub_directory",
    "run_all_startup_checks",
    "run_full_scan",
]
