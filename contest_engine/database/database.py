"""
Async SQLAlchemy engine and session scopes for the contest engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from contest_engine.config import Config
from contest_engine.database.models import Base
from contest_engine.utils.logger import setup_logger

# Plain driver URL prefix -> async driver prefix
ASYNC_DRIVERS = {
    'sqlite:///': 'sqlite+aiosqlite:///',
}


def to_async_url(url: str) -> str:
    """Swap a plain driver URL for its async counterpart; other URLs pass through."""
    for plain, async_prefix in ASYNC_DRIVERS.items():
        if url.startswith(plain):
            return async_prefix + url[len(plain):]
    return url


class Database:
    """Owns the async engine; services receive its session factory."""
    
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker] = None
    
    async def initialize(self):
        """Connect and create any missing tables."""
        url = to_async_url(self.database_url)
        self.logger.info(f"Connecting to {url.split('://', 1)[0]} database")
        
        self.engine = create_async_engine(url, echo=Config.DEBUG)
        self._sessions = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info(f"Schema ready ({len(Base.metadata.tables)} tables)")
    
    @property
    def session_factory(self) -> async_sessionmaker:
        if self._sessions is None:
            raise RuntimeError("Database.initialize() must be awaited before use")
        return self._sessions
    
    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Read scope; anything left uncommitted is rolled back on close."""
        async with self.session_factory() as session:
            yield session
    
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Write scope: everything done inside commits together, or nothing does
        when an exception escapes the block.
        """
        async with self.session_factory() as session:
            async with session.begin():
                yield session
    
    async def close(self):
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self._sessions = None
