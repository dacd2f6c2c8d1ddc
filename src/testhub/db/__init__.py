"""Database layer: declarative models and read-only repositories."""

from testhub.db.base import Base

__all__ = ["Base"]
