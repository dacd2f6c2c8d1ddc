"""Read-only repositories over the persisted scan snapshot."""

from datetime import date
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from testhub.db.base import Base
from testhub.db.models import (
    DailyMetric,
    RepositoryRecord,
    ScanSession,
    Team,
    TestClass,
    TestHelperClass,
    TestMethod,
)

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common read operations."""

    def __init__(self, session: AsyncSession, model: type[T]):
        self.session = session
        self.model = model

    async def get(self, id: int) -> T | None:
        """Get entity by ID."""
        return await self.session.get(self.model, id)

    async def get_all(self) -> list[T]:
        """Get all entities."""
        result = await self.session.execute(select(self.model).order_by(self.model.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count entities."""
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())


class TeamRepository(BaseRepository[Team]):
    """Repository for Team lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Team)

    async def get_by_team_code(self, team_code: str) -> Team | None:
        """Get team by its natural key."""
        result = await self.session.execute(select(Team).where(Team.team_code == team_code))
        return result.scalar_one_or_none()


class RepositoryRecordRepository(BaseRepository[RepositoryRecord]):
    """Repository for scanned repository lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, RepositoryRecord)

    async def get_by_git_url(self, git_url: str) -> RepositoryRecord | None:
        """Get repository by its natural key."""
        result = await self.session.execute(
            select(RepositoryRecord).where(RepositoryRecord.git_url == git_url)
        )
        return result.scalar_one_or_none()

    async def list_by_team(self, team_id: int) -> list[RepositoryRecord]:
        """Get repositories owned by a team."""
        result = await self.session.execute(
            select(RepositoryRecord)
            .where(RepositoryRecord.team_id == team_id)
            .order_by(RepositoryRecord.repository_name)
        )
        return list(result.scalars().all())


class ScanSessionRepository(BaseRepository[ScanSession]):
    """Repository for scan session lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ScanSession)

    async def get_latest(self) -> ScanSession | None:
        """Get the most recent scan session."""
        result = await self.session.execute(
            select(ScanSession).order_by(ScanSession.scan_date.desc(), ScanSession.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 20) -> list[ScanSession]:
        """Get the most recent scan sessions, newest first."""
        result = await self.session.execute(
            select(ScanSession).order_by(ScanSession.scan_date.desc(), ScanSession.id.desc()).limit(limit)
        )
        return list(result.scalars().all())


class TestClassRepository(BaseRepository[TestClass]):
    """Repository for test class lookups."""

    __test__ = False

    def __init__(self, session: AsyncSession):
        super().__init__(session, TestClass)

    async def list_by_repository(
        self, repository_id: int, scan_session_id: int | None = None
    ) -> list[TestClass]:
        """Get test classes of a repository, optionally for one session."""
        query = select(TestClass).where(TestClass.repository_id == repository_id)
        if scan_session_id is not None:
            query = query.where(TestClass.scan_session_id == scan_session_id)
        result = await self.session.execute(query.order_by(TestClass.id))
        return list(result.scalars().all())

    async def list_by_scan_session(self, scan_session_id: int) -> list[TestClass]:
        """Get test classes written by a session."""
        result = await self.session.execute(
            select(TestClass).where(TestClass.scan_session_id == scan_session_id).order_by(TestClass.id)
        )
        return list(result.scalars().all())


class TestMethodRepository(BaseRepository[TestMethod]):
    """Repository for test method lookups."""

    __test__ = False

    def __init__(self, session: AsyncSession):
        super().__init__(session, TestMethod)

    async def list_by_test_class(self, test_class_id: int) -> list[TestMethod]:
        """Get methods of a test class row."""
        result = await self.session.execute(
            select(TestMethod).where(TestMethod.test_class_id == test_class_id).order_by(TestMethod.id)
        )
        return list(result.scalars().all())

    async def list_by_scan_session(self, scan_session_id: int) -> list[TestMethod]:
        """Get methods written by a session."""
        result = await self.session.execute(
            select(TestMethod).where(TestMethod.scan_session_id == scan_session_id).order_by(TestMethod.id)
        )
        return list(result.scalars().all())

    async def list_annotated_by_repository(
        self, repository_id: int, scan_session_id: int
    ) -> list[TestMethod]:
        """Get annotated methods of a repository within one session."""
        result = await self.session.execute(
            select(TestMethod)
            .join(TestClass, TestMethod.test_class_id == TestClass.id)
            .where(
                TestClass.repository_id == repository_id,
                TestMethod.scan_session_id == scan_session_id,
                TestMethod.has_annotation.is_(True),
            )
            .order_by(TestMethod.id)
        )
        return list(result.scalars().all())


class TestHelperClassRepository(BaseRepository[TestHelperClass]):
    """Repository for helper class lookups."""

    __test__ = False

    def __init__(self, session: AsyncSession):
        super().__init__(session, TestHelperClass)

    async def list_by_repository(self, repository_id: int, scan_session_id: int) -> list[TestHelperClass]:
        """Get helper classes of a repository within one session."""
        result = await self.session.execute(
            select(TestHelperClass)
            .where(
                TestHelperClass.repository_id == repository_id,
                TestHelperClass.scan_session_id == scan_session_id,
            )
            .order_by(TestHelperClass.id)
        )
        return list(result.scalars().all())


class DailyMetricRepository(BaseRepository[DailyMetric]):
    """Repository for daily rollup lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DailyMetric)

    async def get_by_date(self, metric_date: date) -> DailyMetric | None:
        """Get the rollup of a day."""
        result = await self.session.execute(
            select(DailyMetric).where(DailyMetric.metric_date == metric_date)
        )
        return result.scalar_one_or_none()

    async def get_latest_before(self, metric_date: date) -> DailyMetric | None:
        """Get the most recent rollup strictly before a day."""
        result = await self.session.execute(
            select(DailyMetric)
            .where(DailyMetric.metric_date < metric_date)
            .order_by(DailyMetric.metric_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_range(self, start: date, end: date) -> list[DailyMetric]:
        """Get rollups between two days, inclusive, oldest first."""
        result = await self.session.execute(
            select(DailyMetric)
            .where(DailyMetric.metric_date >= start, DailyMetric.metric_date <= end)
            .order_by(DailyMetric.metric_date)
        )
        return list(result.scalars().all())

    async def list_recent(self, days: int = 30) -> list[DailyMetric]:
        """Get the latest rollups, newest first."""
        result = await self.session.execute(
            select(DailyMetric).order_by(DailyMetric.metric_date.desc()).limit(days)
        )
        return list(result.scalars().all())


__all__ = [
    "BaseRepository",
    "DailyMetricRepository",
    "RepositoryRecordRepository",
    "ScanSessionRepository",
    "TeamRepository",
    "TestClassRepository",
    "TestHelperClassRepository",
    "TestMethodRepository",
]
