"""Repository model: identity persists across scan sessions by git URL."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, utcnow


class RepositoryRecord(Base):
    """A scanned repository with the totals of its latest scan."""

    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    repository_name: Mapped[str] = mapped_column(String(255), nullable=False)
    repository_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    git_url: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True)
    team_id: Mapped[int | None] = mapped_column(
        Identifier, ForeignKey("teams.id"), nullable=True
    )
    first_scan_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_scan_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    total_test_classes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_test_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_annotated_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    annotation_coverage_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    test_code_lines: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    test_related_code_lines: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_repositories_name", "repository_name"),
        Index("ix_repositories_team_id", "team_id"),
    )

    def __repr__(self) -> str:
        return f"<RepositoryRecord(id={self.id}, git_url='{self.git_url}')>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "repository_name": self.repository_name,
            "repository_path": self.repository_path,
            "git_url": self.git_url,
            "team_id": self.team_id,
            "first_scan_date": self.first_scan_date.isoformat() if self.first_scan_date else None,
            "last_scan_date": self.last_scan_date.isoformat() if self.last_scan_date else None,
            "total_test_classes": self.total_test_classes,
            "total_test_methods": self.total_test_methods,
            "total_annotated_methods": self.total_annotated_methods,
            "annotation_coverage_rate": self.annotation_coverage_rate,
            "test_code_lines": self.test_code_lines,
            "test_related_code_lines": self.test_related_code_lines,
        }
