"""Team model: repository owners, keyed by team code."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from testhub.db.base import Base, Identifier, utcnow


class Team(Base):
    """A team owning repositories."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    team_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    team_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, team_code='{self.team_code}')>"
