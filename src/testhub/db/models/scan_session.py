"""Scan session model: one atomically persisted pipeline run."""

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, JSONType, utcnow


class ScanSession(Base):
    """Totals and status of one scan run; never updated after commit."""

    __tablename__ = "scan_sessions"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    scan_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    scan_directory: Mapped[str] = mapped_column(String(1000), nullable=False)
    total_repositories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_test_classes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_test_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_annotated_methods: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scan_duration_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    scan_status: Mapped[str] = mapped_column(String(50), nullable=False, default="completed")
    error_log: Mapped[str | None] = mapped_column(Text, nullable=True)
    scan_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONType, nullable=True
    )

    __table_args__ = (Index("ix_scan_sessions_scan_date", "scan_date"),)

    def __repr__(self) -> str:
        return f"<ScanSession(id={self.id}, status='{self.scan_status}')>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "scan_date": self.scan_date.isoformat() if self.scan_date else None,
            "scan_directory": self.scan_directory,
            "total_repositories": self.total_repositories,
            "total_test_classes": self.total_test_classes,
            "total_test_methods": self.total_test_methods,
            "total_annotated_methods": self.total_annotated_methods,
            "scan_duration_ms": self.scan_duration_ms,
            "scan_status": self.scan_status,
            "error_log": self.error_log,
            "metadata": self.scan_metadata,
        }
