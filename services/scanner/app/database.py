"""
Local database setup for the scanner agent.

The offline queue and the local inventory projection live in a SQLite file on
the device, accessed through SQLAlchemy's asyncio extension.
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.ext.declarative import declarative_base

from .config import SCANNER_DATABASE_URL

Base = declarative_base()


def create_local_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the device database."""
    return create_async_engine(url or SCANNER_DATABASE_URL)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory used by the queue, projection and sync code."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create the local tables if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
