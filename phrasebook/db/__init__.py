"""
Persistence layer: declarative base, async engine/session, FastAPI deps.

Models live in ``phrasebook.models``; import them from there so they are
registered on ``Base.metadata``.
"""

from phrasebook.db.base import Base, BaseModel
from phrasebook.db.deps import DBSession, get_db, get_db_override
from phrasebook.db.session import (
    AsyncSessionLocal,
    check_db_health,
    close_db,
    engine,
    init_db,
    task_session,
)

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "BaseModel",
    "DBSession",
    "check_db_health",
    "close_db",
    "engine",
    "get_db",
    "get_db_override",
    "init_db",
    "task_session",
]
