"""Database layer for the standalone BIMSched document store."""

from bimsched.db.connection import get_session, init_db
from bimsched.db.models import Base, RecordModel, ScheduleModel

__all__ = [
    "Base",
    "RecordModel",
    "ScheduleModel",
    "get_session",
    "init_db",
]
