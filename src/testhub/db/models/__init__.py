"""Database models package."""

from testhub.db.models.daily_metric import DailyMetric
from testhub.db.models.helper_class import TestHelperClass
from testhub.db.models.repository import RepositoryRecord
from testhub.db.models.scan_session import ScanSession
from testhub.db.models.team import Team
from testhub.db.models.test_class import TestClass
from testhub.db.models.test_method import TestMethod

__all__ = [
    "DailyMetric",
    "RepositoryRecord",
    "ScanSession",
    "Team",
    "TestClass",
    "TestHelperClass",
    "TestMethod",
]
