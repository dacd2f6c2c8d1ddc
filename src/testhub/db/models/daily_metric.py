"""Daily rollup model, one row per calendar day."""

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, utcnow


class DailyMetric(Base):
    """Global totals of the last scan of a day."""

    __tablename__ = "daily_metrics"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    metric_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    total_repositories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_test_classes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_test_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_annotated_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overall_coverage_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    new_test_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_annotated_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<DailyMetric(metric_date={self.metric_date}, methods={self.total_test_methods})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "metric_date": self.metric_date.isoformat(),
            "total_repositories": self.total_repositories,
            "total_test_classes": self.total_test_classes,
            "total_test_methods": self.total_test_methods,
            "total_annotated_methods": self.total_annotated_methods,
            "overall_coverage_rate": self.overall_coverage_rate,
            "new_test_methods": self.new_test_methods,
            "new_annotated_methods": self.new_annotated_methods,
        }
