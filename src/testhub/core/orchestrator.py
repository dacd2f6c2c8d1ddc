"""Scan orchestration: clone, scan, aggregate and persist a set of repositories.

Normal mode clones or updates every target first, then scans the ones that
succeeded, optionally fanning out over a bounded number of workers.
Temporary-clone mode processes one repository at a time (clone, scan,
delete) to bound disk usage. In both modes a failing repository is recorded
and skipped; the run succeeds when at least one repository was processed.
"""

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from testhub.core.persistence import PersistenceCoordinator
from testhub.core.startup_checks import check_database, run_all_startup_checks
from testhub.git.disk import UNKNOWN_SIZE, format_size
from testhub.git.manager import GitRepositoryManager, GitResult, repository_dir_name
from testhub.lib.config import Settings, get_settings
from testhub.lib.database import create_engine, create_session_factory, init_schema
from testhub.lib.errors import ConfigurationError, PersistenceError, StartupCheckError
from testhub.lib.logging import bind_context, configure_logging, get_logger, unbind_context
from testhub.models.scan import (
    FailureStage,
    RepositoryFailure,
    RepositoryScanTarget,
    ScanCredentials,
    ScanOutcome,
    ScanStatus,
)
from testhub.models.summary import TestCollectionSummary
from testhub.models.test_info import RepositoryTestInfo
from testhub.scanning.glob import PathFilter
from testhub.scanning.repository_scanner import RepositoryScanner

logger = get_logger(__name__)

ReportCallback = Callable[[ScanOutcome], Awaitable[None]]

T = TypeVar("T")
R = TypeVar("R")


class ScanOrchestrator:
    """
    Drive one full scan over a list of repository targets.

    Example:
        >>> orchestrator = ScanOrchestrator(Path("/data/hub"), manager, scanner, coordinator)
        >>> outcome = await orchestrator.run(targets)
        >>> outcome.summary_text()
        'Scan succeeded: 41 of 42 repositories processed, session 7, 1 failed'
    """

    def __init__(
        self,
        hub_directory: Path,
        git_manager: GitRepositoryManager,
        scanner: RepositoryScanner,
        persistence: PersistenceCoordinator,
        temp_clone_mode: bool = False,
        max_repositories: int = 100,
        max_parallel: int = 1,
        path_filter: PathFilter | None = None,
        url_filter: PathFilter | None = None,
        on_complete: ReportCallback | None = None,
    ):
        if max_repositories <= 0:
            raise ConfigurationError("max_repositories must be positive", {"value": max_repositories})
        if max_parallel <= 0:
            raise ConfigurationError("max_parallel must be positive", {"value": max_parallel})
        self.hub_directory = Path(hub_directory)
        self._git = git_manager
        self._scanner = scanner
        self._persistence = persistence
        self.temp_clone_mode = temp_clone_mode
        self.max_repositories = max_repositories
        self.max_parallel = max_parallel
        self._path_filter = path_filter
        self._url_filter = url_filter
        self._on_complete = on_complete
        self._stop_requested = False

    @classmethod
    def from_settings(
        cls,
        hub_directory: Path,
        settings: Settings,
        persistence: PersistenceCoordinator,
        credentials: ScanCredentials | None = None,
        on_complete: ReportCallback | None = None,
    ) -> "ScanOrchestrator":
        """Build an orchestrator with git and scanning configured from settings."""
        path_filter = PathFilter(settings.include_patterns, settings.exclude_patterns)
        url_filter = PathFilter.for_urls(settings.include_url_patterns, settings.exclude_url_patterns)
        return cls(
            hub_directory,
            git_manager=GitRepositoryManager.from_settings(hub_directory, settings, credentials),
            scanner=RepositoryScanner.from_settings(settings),
            persistence=persistence,
            temp_clone_mode=settings.temp_clone_mode,
            max_repositories=settings.max_repositories_per_scan,
            max_parallel=settings.max_parallel_repositories,
            path_filter=None if path_filter.is_empty else path_filter,
            url_filter=None if url_filter.is_empty else url_filter,
            on_complete=on_complete,
        )

    def request_stop(self) -> None:
        """Stop before the next repository; work done so far is persisted as a partial session."""
        logger.info("scan_stop_requested")
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    async def run(self, targets: Sequence[RepositoryScanTarget]) -> ScanOutcome:
        """
        Scan all targets and persist one scan session.

        Args:
            targets: Repositories to scan, in priority order

        Returns:
            ScanOutcome with the session id on success and every failed target
        """
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        bind_context(scan_run_id=uuid.uuid4().hex[:12])
        try:
            selected, failures = self._select_targets(targets)
            summary = TestCollectionSummary(scan_directory=str(self.hub_directory))
            self._git.ensure_hub()
            logger.info(
                "scan_started",
                mode="temporary_clone" if self.temp_clone_mode else "normal",
                targets=len(selected),
                hub_directory=str(self.hub_directory),
            )

            if self.temp_clone_mode:
                succeeded, stopped = await self._run_temporary(selected, summary, failures)
            else:
                succeeded, stopped = await self._run_normal(selected, summary, failures)

            outcome = ScanOutcome(
                success=False,
                total_targets=len(selected),
                succeeded=succeeded,
                counts=summary.counts(),
                failures=failures,
                stopped_early=stopped,
            )

            if succeeded == 0:
                outcome.error = "no repository was processed successfully"
                outcome.duration_ms = elapsed_ms()
                logger.error("scan_failed", reason=outcome.error, failures=len(failures))
                return outcome

            status = ScanStatus.PARTIAL if failures or stopped else ScanStatus.COMPLETED
            error_log = "\n".join(failure.describe() for failure in failures) or None
            metadata = {
                "mode": "temporary_clone" if self.temp_clone_mode else "normal",
                "targets": len(selected),
                "succeeded": succeeded,
                "failed": len(failures),
                "stopped_early": stopped,
                "team_codes": summary.team_codes,
            }
            try:
                result = await self._persistence.persist_with_shadow(
                    summary, elapsed_ms, status=status, error_log=error_log, metadata=metadata
                )
            except PersistenceError as e:
                outcome.error = e.message
                outcome.duration_ms = elapsed_ms()
                logger.error("scan_failed", reason=e.message)
                return outcome

            outcome.success = True
            outcome.session_id = result.session_id
            outcome.shadow_session_id = result.shadow_session_id
            outcome.shadow_error = result.shadow_error
            outcome.duration_ms = result.duration_ms
            logger.info(
                "scan_completed",
                session_id=result.session_id,
                status=status.value,
                summary=outcome.summary_text(),
                **summary.counts(),
            )
            await self._report(outcome)
            return outcome
        finally:
            unbind_context("scan_run_id")

    def _select_targets(
        self, targets: Sequence[RepositoryScanTarget]
    ) -> tuple[list[RepositoryScanTarget], list[RepositoryFailure]]:
        failures: list[RepositoryFailure] = []
        candidates = []
        for target in targets:
            if not target.active:
                logger.info("target_skipped_inactive", url=target.url)
                continue
            if self._url_filter is not None and not self._url_filter.matches(target.url):
                logger.info("target_skipped_by_url_filter", url=target.url)
                continue
            candidates.append(target)

        if len(candidates) > self.max_repositories:
            logger.warning(
                "repository_cap_applied",
                cap=self.max_repositories,
                dropped=len(candidates) - self.max_repositories,
            )
            candidates = candidates[: self.max_repositories]

        selected = []
        owners: dict[str, str] = {}
        for target in candidates:
            try:
                directory = repository_dir_name(target.url)
            except ValueError as e:
                failures.append(RepositoryFailure(target.url, FailureStage.SKIPPED, str(e)))
                continue
            if self._path_filter is not None and not self._path_filter.matches(directory):
                logger.info("target_skipped_by_path_filter", url=target.url, directory=directory)
                continue
            key = directory.lower()
            if key in owners:
                failures.append(
                    RepositoryFailure(
                        target.url,
                        FailureStage.SKIPPED,
                        f"local directory '{directory}' already used by {owners[key]}",
                    )
                )
                continue
            owners[key] = target.url
            selected.append(target)
        return selected, failures

    async def _bounded(
        self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]
    ) -> list[R | None]:
        """Run ``worker`` over items with at most ``max_parallel`` in flight; None for items not started."""
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def guarded(item: T) -> R | None:
            async with semaphore:
                if self._stop_requested:
                    return None
                return await worker(item)

        return list(await asyncio.gather(*(guarded(item) for item in items)))

    async def _scan(self, target: RepositoryScanTarget, path: Path) -> RepositoryTestInfo:
        return await asyncio.to_thread(self._scanner.scan, path, target)

    async def _clone(self, target: RepositoryScanTarget) -> GitResult:
        """Clone or update one target; any error becomes a failed GitResult."""
        try:
            return await self._git.clone_or_update(target.url)
        except Exception as e:
            logger.error("repository_clone_crashed", url=target.url, error=str(e), exc_info=True)
            try:
                path = self._git.repository_path(target.url)
            except ValueError:
                path = None
            return GitResult(url=target.url, success=False, path=path, action="clone", error=str(e))

    async def _run_normal(
        self,
        targets: list[RepositoryScanTarget],
        summary: TestCollectionSummary,
        failures: list[RepositoryFailure],
    ) -> tuple[int, bool]:
        git_results = await self._bounded(targets, self._clone)

        ready: list[tuple[RepositoryScanTarget, Path]] = []
        for target, git_result in zip(targets, git_results, strict=True):
            if git_result is None:
                continue
            if git_result.success and git_result.path is not None:
                ready.append((target, git_result.path))
            else:
                failures.append(
                    RepositoryFailure(target.url, FailureStage.CLONE, git_result.error or "clone failed")
                )
        logger.info("clone_phase_completed", ready=len(ready), failed=len(targets) - len(ready))

        async def scan_one(item: tuple[RepositoryScanTarget, Path]) -> RepositoryTestInfo | RepositoryFailure:
            target, path = item
            try:
                return await self._scan(target, path)
            except Exception as e:
                logger.error("repository_scan_failed", url=target.url, error=str(e), exc_info=True)
                return RepositoryFailure(target.url, FailureStage.SCAN, str(e))

        scan_results = await self._bounded(ready, scan_one)

        # Single writer: aggregation happens here, in target order
        succeeded = 0
        for result in scan_results:
            if result is None:
                continue
            if isinstance(result, RepositoryFailure):
                failures.append(result)
                continue
            succeeded += 1
            if result.total_test_classes > 0:
                summary.add_repository(result)

        started = sum(1 for r in git_results if r is not None)
        stopped = self._stop_requested and (
            started < len(targets) or any(r is None for r in scan_results)
        )
        return succeeded, stopped

    async def _run_temporary(
        self,
        targets: list[RepositoryScanTarget],
        summary: TestCollectionSummary,
        failures: list[RepositoryFailure],
    ) -> tuple[int, bool]:
        succeeded = 0
        for index, target in enumerate(targets):
            if self._stop_requested:
                logger.info("scan_stopped", processed=index, remaining=len(targets) - index)
                return succeeded, True

            await self._log_disk_space("disk_space_before_clone", target.url)
            git_result: GitResult | None = None
            try:
                git_result = await self._clone(target)
                await self._log_disk_space("disk_space_after_clone", target.url)
                if not git_result.success or git_result.path is None:
                    failures.append(
                        RepositoryFailure(target.url, FailureStage.CLONE, git_result.error or "clone failed")
                    )
                    continue
                try:
                    repository = await self._scan(target, git_result.path)
                except Exception as e:
                    logger.error("repository_scan_failed", url=target.url, error=str(e), exc_info=True)
                    failures.append(RepositoryFailure(target.url, FailureStage.SCAN, str(e)))
                    continue
                succeeded += 1
                if repository.total_test_classes > 0:
                    summary.add_repository(repository)
            finally:
                await self._cleanup(target, git_result)
        return succeeded, False

    async def _cleanup(self, target: RepositoryScanTarget, git_result: GitResult | None) -> None:
        if git_result is None or git_result.path is None:
            return
        try:
            if not git_result.path.exists():
                return
            if not await self._git.delete(target.url):
                logger.error("temporary_clone_not_deleted", url=target.url, path=str(git_result.path))
            await self._log_disk_space("disk_space_after_delete", target.url)
        except Exception as e:
            logger.error(
                "temporary_clone_cleanup_failed",
                url=target.url,
                path=str(git_result.path),
                error=str(e),
                exc_info=True,
            )

    async def _log_disk_space(self, event: str, url: str) -> None:
        free = await asyncio.to_thread(self._git.available_disk_space)
        if free == UNKNOWN_SIZE:
            return
        logger.info(event, url=url, free_bytes=free, free=format_size(free))

    async def _report(self, outcome: ScanOutcome) -> None:
        if self._on_complete is None:
            return
        try:
            await self._on_complete(outcome)
        except Exception as e:
            logger.error("report_callback_failed", session_id=outcome.session_id, error=str(e), exc_info=True)


async def run_full_scan(
    hub_directory: Path | str,
    targets: Sequence[RepositoryScanTarget],
    *,
    credentials: ScanCredentials | None = None,
    temp_clone_mode: bool | None = None,
    max_repositories: int | None = None,
    settings: Settings | None = None,
    on_complete: ReportCallback | None = None,
    run_startup_checks: bool = True,
) -> ScanOutcome:
    """
    Entry point for external collaborators: run one full scan.

    Args:
        hub_directory: Directory repositories are cloned into
        targets: Repositories to scan
        credentials: Optional HTTPS or SSH credentials for git
        temp_clone_mode: Override of the configured execution mode
        max_repositories: Override of the per-run repository cap
        settings: Settings to use (environment settings when None)
        on_complete: Async callback receiving the outcome after a successful persist
        run_startup_checks: Verify git, hub directory and primary store first

    Returns:
        ScanOutcome with success flag, session id and summary counts

    Raises:
        ConfigurationError: If settings or arguments are invalid
        StartupCheckError: If a startup check fails
    """
    settings = settings or get_settings()
    settings.validate_for_scan()
    configure_logging(settings.log_level, settings.log_dir)
    if max_repositories is not None and max_repositories <= 0:
        raise ConfigurationError("max_repositories must be positive", {"value": max_repositories})
    hub = Path(hub_directory)

    overrides: dict[str, Any] = {}
    if temp_clone_mode is not None:
        overrides["temp_clone_mode"] = temp_clone_mode
    if max_repositories is not None:
        overrides["max_repositories_per_scan"] = max_repositories
    if overrides:
        settings = settings.model_copy(update=overrides)

    primary_engine = create_engine(settings.database_url, echo=settings.database_echo)
    shadow_engine = None
    if settings.shadow_write_enabled and settings.shadow_database_url:
        shadow_engine = create_engine(settings.shadow_database_url, echo=settings.database_echo)

    try:
        primary_factory = create_session_factory(primary_engine)
        shadow_factory = create_session_factory(shadow_engine) if shadow_engine else None

        if run_startup_checks:
            await run_all_startup_checks(hub, {"primary": primary_factory})
        await init_schema(primary_engine)

        if shadow_engine is not None and shadow_factory is not None:
            try:
                await check_database(shadow_factory, "shadow")
                await init_schema(shadow_engine)
            except (StartupCheckError, SQLAlchemyError, OSError) as e:
                logger.warning("shadow_store_unavailable", error=str(e))

        orchestrator = ScanOrchestrator.from_settings(
            hub,
            settings,
            PersistenceCoordinator(primary_factory, shadow_factory),
            credentials=credentials,
            on_complete=on_complete,
        )
        return await orchestrator.run(targets)
    finally:
        await primary_engine.dispose()
        if shadow_engine is not None:
            await shadow_engine.dispose()


__all__ = ["ReportCallback", "ScanOrchestrator", "run_full_scan"]
