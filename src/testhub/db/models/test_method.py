"""Test method rows: serialized annotation payload plus normalized columns."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, JSONType, utcnow


class TestMethod(Base):
    """A test method as seen by one scan session.

    ``annotation_*`` columns are filled only when ``has_annotation`` is true.
    """

    __test__ = False
    __tablename__ = "test_methods"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    test_class_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("test_classes.id", ondelete="CASCADE"), nullable=False
    )
    scan_session_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("scan_sessions.id", ondelete="CASCADE"), nullable=False
    )
    method_name: Mapped[str] = mapped_column(String(255), nullable=False)
    method_signature: Mapped[str] = mapped_column(Text, nullable=False, default="")
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    method_loc: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    method_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    has_annotation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    test_case_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    annotation_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    annotation_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    annotation_author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    annotation_status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    annotation_target_class: Mapped[str | None] = mapped_column(String(255), nullable=True)
    annotation_target_method: Mapped[str | None] = mapped_column(String(255), nullable=True)
    annotation_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    annotation_tags: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    annotation_test_points: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    annotation_requirements: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    annotation_defects: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    annotation_testcases: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    annotation_last_update_time: Mapped[str | None] = mapped_column(String(255), nullable=True)
    annotation_last_update_author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("ix_test_methods_test_class_id", "test_class_id"),
        Index("ix_test_methods_scan_session_id", "scan_session_id"),
        Index("ix_test_methods_has_annotation", "has_annotation"),
    )

    def __repr__(self) -> str:
        return f"<TestMethod(id={self.id}, method_name='{self.method_name}')>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "test_class_id": self.test_class_id,
            "scan_session_id": self.scan_session_id,
            "method_name": self.method_name,
            "method_signature": self.method_signature,
            "line_number": self.line_number,
            "method_loc": self.method_loc,
            "has_annotation": self.has_annotation,
            "test_case_ids": self.test_case_ids,
            "annotation_data": self.annotation_data,
        }
