"""Helper class rows: non-test support code found under test roots."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, utcnow


class TestHelperClass(Base):
    """A helper class as seen by one scan session."""

    __test__ = False
    __tablename__ = "test_helper_classes"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    scan_session_id: Mapped[int] = mapped_column(
        Identifier, ForeignKey("scan_sessions.id", ondelete="CASCADE"), nullable=False
    )
    class_name: Mapped[str] = mapped_column(String(255), nullable=False)
    package_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    loc: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_test_helper_classes_repository_id", "repository_id"),)

    def __repr__(self) -> str:
        return f"<TestHelperClass(id={self.id}, class_name='{self.class_name}')>"
