"""Transactional persistence of scan sessions to the primary and shadow stores.

A scan session is written in one transaction: the session row, then per
repository the team and repository identity rows (upserted by team code and
git URL), the test class, test method and helper class rows, and finally the
day's rollup row. Any failure rolls the whole session back.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from testhub.db.models import (
    DailyMetric,
    RepositoryRecord,
    ScanSession,
    Team,
    TestClass,
    TestHelperClass,
    TestMethod,
)
from testhub.db.repository import DailyMetricRepository, RepositoryRecordRepository, TeamRepository
from testhub.lib.database import is_transient_error, transaction
from testhub.lib.errors import ConfigurationError, PersistenceError, ShadowPersistenceError
from testhub.lib.logging import get_logger
from testhub.models.scan import ScanStatus
from testhub.models.summary import TestCollectionSummary
from testhub.models.test_info import RepositoryTestInfo, TestMethodInfo

logger = get_logger(__name__)

# Fixed value, or a clock read just before commit
Duration = int | Callable[[], int]

PRIMARY = "primary"
SHADOW = "shadow"


@dataclass(frozen=True)
class PersistResult:
    """Ids written by a primary (and optional shadow) persist."""

    session_id: int
    duration_ms: int
    shadow_session_id: int | None = None
    shadow_error: str | None = None


def _method_row(method: TestMethodInfo, test_class_id: int, session_id: int) -> TestMethod:
    row = TestMethod(
        test_class_id=test_class_id,
        scan_session_id=session_id,
        method_name=method.method_name,
        method_signature=method.signature,
        line_number=method.line_number,
        method_loc=method.method_loc,
        method_body=method.method_body,
        has_annotation=method.has_annotation,
        test_case_ids=list(method.test_case_ids),
        annotation_data=method.annotation.to_dict() if method.annotation else None,
    )
    if method.has_annotation and method.annotation is not None:
        annotation = method.annotation
        row.annotation_title = annotation.title
        row.annotation_author = annotation.author
        row.annotation_status = annotation.status
        row.annotation_target_class = annotation.target_class
        row.annotation_target_method = annotation.target_method
        row.annotation_description = annotation.description
        row.annotation_tags = list(annotation.tags)
        row.annotation_test_points = list(annotation.test_points)
        row.annotation_requirements = list(annotation.related_requirements)
        row.annotation_defects = list(annotation.related_defects)
        row.annotation_testcases = list(annotation.related_testcases)
        row.annotation_last_update_time = annotation.last_update_time
        row.annotation_last_update_author = annotation.last_update_author
    return row


class PersistenceCoordinator:
    """
    Write complete scan snapshots, serialized per store.

    Example:
        >>> coordinator = PersistenceCoordinator(primary_factory, shadow_factory)
        >>> result = await coordinator.persist_with_shadow(summary, duration_ms=1520)
        >>> result.session_id
        42
    """

    def __init__(
        self,
        primary: async_sessionmaker[AsyncSession],
        shadow: async_sessionmaker[AsyncSession] | None = None,
    ):
        self._primary = primary
        self._shadow = shadow
        self._primary_lock = asyncio.Lock()
        self._shadow_lock = asyncio.Lock()

    @property
    def shadow_enabled(self) -> bool:
        return self._shadow is not None

    async def persist(
        self,
        summary: TestCollectionSummary,
        duration_ms: Duration,
        status: ScanStatus = ScanStatus.COMPLETED,
        error_log: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """
        Write a scan session to the primary store.

        Args:
            summary: Aggregated scan results
            duration_ms: Run duration, or a callable returning it at commit time
            status: Session status
            error_log: Failed targets, one per line
            metadata: Extra session details

        Returns:
            The new scan session id

        Raises:
            PersistenceError: If the transaction failed (nothing was written)
        """
        session_id, _ = await self._write(
            PRIMARY, self._primary, self._primary_lock, summary, duration_ms, status, error_log, metadata
        )
        return session_id

    async def persist_shadow(
        self,
        summary: TestCollectionSummary,
        duration_ms: Duration,
        status: ScanStatus = ScanStatus.COMPLETED,
        error_log: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """
        Write the same scan session to the shadow store.

        Returns:
            The shadow scan session id

        Raises:
            ConfigurationError: If no shadow store is configured
            ShadowPersistenceError: If the shadow transaction failed
        """
        if self._shadow is None:
            raise ConfigurationError("No shadow store configured")
        try:
            session_id, _ = await self._write(
                SHADOW, self._shadow, self._shadow_lock, summary, duration_ms, status, error_log, metadata
            )
        except PersistenceError as e:
            raise ShadowPersistenceError(e.message, context=e.context) from e
        return session_id

    async def persist_with_shadow(
        self,
        summary: TestCollectionSummary,
        duration_ms: Duration,
        status: ScanStatus = ScanStatus.COMPLETED,
        error_log: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PersistResult:
        """
        Write to the primary store, then replay to the shadow store when configured.

        A shadow failure is logged and reported in the result; it never
        affects the committed primary session.

        Raises:
            PersistenceError: If the primary transaction failed
        """
        session_id, recorded_duration = await self._write(
            PRIMARY, self._primary, self._primary_lock, summary, duration_ms, status, error_log, metadata
        )
        if self._shadow is None:
            return PersistResult(session_id=session_id, duration_ms=recorded_duration)

        try:
            shadow_id = await self.persist_shadow(
                summary, recorded_duration, status, error_log, metadata
            )
        except Exception as e:
            # Primary session is already committed
            message = e.message if isinstance(e, ShadowPersistenceError) else f"{type(e).__name__}: {e}"
            logger.warning(
                "shadow_persist_failed",
                primary_session_id=session_id,
                error=message,
                exc_info=not isinstance(e, ShadowPersistenceError),
            )
            return PersistResult(
                session_id=session_id, duration_ms=recorded_duration, shadow_error=message
            )
        return PersistResult(
            session_id=session_id, duration_ms=recorded_duration, shadow_session_id=shadow_id
        )

    async def _write(
        self,
        store: str,
        factory: async_sessionmaker[AsyncSession],
        lock: asyncio.Lock,
        summary: TestCollectionSummary,
        duration_ms: Duration,
        status: ScanStatus,
        error_log: str | None,
        metadata: dict[str, Any] | None,
    ) -> tuple[int, int]:
        async with lock:
            try:
                async with transaction(factory) as session:
                    scan_session = ScanSession(
                        scan_date=summary.scan_timestamp,
                        scan_directory=summary.scan_directory,
                        total_repositories=summary.total_repositories,
                        total_test_classes=summary.total_test_classes,
                        total_test_methods=summary.total_test_methods,
                        total_annotated_methods=summary.total_annotated_test_methods,
                        scan_duration_ms=0,
                        scan_status=status.value,
                        error_log=error_log,
                        scan_metadata=metadata,
                    )
                    session.add(scan_session)
                    await session.flush()

                    for repository in summary.repositories:
                        await self._write_repository(
                            session, scan_session.id, repository, summary.scan_timestamp
                        )
                    await self._upsert_daily_metric(session, summary, summary.scan_timestamp.date())

                    duration = duration_ms() if callable(duration_ms) else duration_ms
                    scan_session.scan_duration_ms = int(duration)
                    await session.flush()
                    session_id = scan_session.id
            except (SQLAlchemyError, OSError) as e:
                logger.error(
                    "scan_session_persist_failed",
                    store=store,
                    error=str(e),
                    transient=is_transient_error(e),
                )
                raise PersistenceError(
                    f"Scan session rolled back on {store} store: {e}",
                    context={"store": store},
                ) from e

        logger.info(
            "scan_session_persisted",
            store=store,
            session_id=session_id,
            repositories=summary.total_repositories,
            test_methods=summary.total_test_methods,
            duration_ms=int(duration),
        )
        return session_id, int(duration)

    async def _ensure_team(self, session: AsyncSession, repository: RepositoryTestInfo) -> int | None:
        if not repository.team_code:
            return None
        team = await TeamRepository(session).get_by_team_code(repository.team_code)
        if team is None:
            team = Team(
                team_code=repository.team_code,
                team_name=repository.team_name or repository.team_code,
            )
            session.add(team)
            await session.flush()
        elif repository.team_name and team.team_name != repository.team_name:
            team.team_name = repository.team_name
        return team.id

    async def _write_repository(
        self,
        session: AsyncSession,
        session_id: int,
        repository: RepositoryTestInfo,
        scan_time: datetime,
    ) -> None:
        team_id = await self._ensure_team(session, repository)

        # Repositories without a known remote are keyed by their local path
        git_url = repository.git_url or repository.repository_path
        record = await RepositoryRecordRepository(session).get_by_git_url(git_url)
        if record is None:
            record = RepositoryRecord(git_url=git_url, first_scan_date=scan_time)
            session.add(record)
        record.repository_name = repository.repository_name
        record.repository_path = repository.repository_path
        record.team_id = team_id
        record.last_scan_date = scan_time
        record.total_test_classes = repository.total_test_classes
        record.total_test_methods = repository.total_test_methods
        record.total_annotated_methods = repository.total_annotated_test_methods
        record.annotation_coverage_rate = repository.coverage_rate
        record.test_code_lines = repository.test_code_lines
        record.test_related_code_lines = repository.test_related_code_lines
        await session.flush()

        class_rows = [
            TestClass(
                repository_id=record.id,
                scan_session_id=session_id,
                class_name=test_class.class_name,
                package_name=test_class.package_name,
                file_path=test_class.file_path,
                class_line_number=test_class.class_line_number,
                class_loc=test_class.class_loc,
                class_content=test_class.class_content,
                total_test_methods=test_class.total_test_methods,
                annotated_test_methods=test_class.annotated_test_methods,
                coverage_rate=test_class.coverage_rate,
            )
            for test_class in repository.test_classes
        ]
        session.add_all(class_rows)
        await session.flush()

        method_rows = [
            _method_row(method, class_row.id, session_id)
            for class_row, test_class in zip(class_rows, repository.test_classes, strict=True)
            for method in test_class.test_methods
        ]
        session.add_all(method_rows)

        session.add_all(
            TestHelperClass(
                repository_id=record.id,
                scan_session_id=session_id,
                class_name=helper.class_name,
                package_name=helper.package_name,
                file_path=helper.file_path,
                line_number=helper.line_number,
                loc=helper.loc,
                content=helper.content,
            )
            for helper in repository.helper_classes
        )
        await session.flush()

    async def _upsert_daily_metric(
        self, session: AsyncSession, summary: TestCollectionSummary, metric_date: date
    ) -> None:
        metrics = DailyMetricRepository(session)
        previous = await metrics.get_latest_before(metric_date)
        new_methods = 0
        new_annotated = 0
        if previous is not None:
            new_methods = max(0, summary.total_test_methods - previous.total_test_methods)
            new_annotated = max(
                0, summary.total_annotated_test_methods - previous.total_annotated_methods
            )

        metric = await metrics.get_by_date(metric_date)
        if metric is None:
            metric = DailyMetric(metric_date=metric_date)
            session.add(metric)
        metric.total_repositories = summary.total_repositories
        metric.total_test_classes = summary.total_test_classes
        metric.total_test_methods = summary.total_test_methods
        metric.total_annotated_methods = summary.total_annotated_test_methods
        metric.overall_coverage_rate = summary.coverage_rate
        metric.new_test_methods = new_methods
        metric.new_annotated_methods = new_annotated
        await session.flush()


__all__ = ["Duration", "PersistResult", "PersistenceCoordinator"]
