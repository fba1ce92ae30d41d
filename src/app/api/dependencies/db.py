"""Database session and configuration dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.config import Settings, get_settings
from src.app.core.db import get_engine, get_session

AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_db_session(settings: AppSettings) -> AsyncGenerator[AsyncSession]:
    """Get a database session for the current request."""
    async with get_session(get_engine(settings)) as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
