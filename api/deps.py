"""FastAPI dependencies for the database session."""

from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db as get_db_session


async def get_db() -> AsyncSession:
    """
    Dependency to get database session.
    Reuses the get_db function from db.py.
    """
    async for session in get_db_session():
        yield session
