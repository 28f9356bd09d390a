"""
Database Dependencies for FastAPI Routes

Routes declare what they need and FastAPI provides it:

    @router.get("/phrases")
    async def list_phrases(db: DBSession):
        ...

The session is opened before the route runs and closed (rolled back on
error) after it returns, so routes and services never manage connection
lifecycle themselves.

Learning Resources:
- FastAPI Dependencies: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phrasebook.db.session import get_session


# ================================
# Database Session Dependency
# ================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Each request gets its own session/transaction. Services commit
    explicitly; rollback happens automatically on errors.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in get_session():
        yield session


# Reusable type annotation: `db: DBSession` instead of
# `db: AsyncSession = Depends(get_db)`
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ================================
# Testing Helpers
# ================================

def get_db_override(session: AsyncSession) -> Callable[[], AsyncGenerator[AsyncSession, None]]:
    """
    Create a dependency override for testing.

    Usage in Tests:
    ---------------
    app.dependency_overrides[get_db] = get_db_override(test_session)
    response = await client.get("/api/v1/phrases")
    app.dependency_overrides.clear()

    Args:
        session: The session to use instead of the real one

    Returns:
        A function that yields the test session
    """
    async def _override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return _override


__all__ = [
    "get_db",
    "DBSession",
    "get_db_override",
]
