"""
Shared service plumbing: session scopes and retries of transient database errors.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from contest_engine.utils.exceptions import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_BASE_DELAY = 0.1  # seconds, doubled per attempt


class BaseService:
    """Holds the session factory every engine service reads through."""
    
    def __init__(self, session_factory):
        self.session_factory = session_factory
    
    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Session committed when the block exits cleanly, rolled back otherwise."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            await session.commit()
    
    async def execute_with_retry(self, operation: Callable[[], Awaitable[T]], attempts: int = 3) -> T:
        """
        Await `operation`, retrying OperationalError (locked file, dropped connection).
        
        Raises:
            DatabaseError: once every attempt failed
        """
        name = getattr(operation, '__name__', 'query')
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except OperationalError as e:
                if attempt >= attempts:
                    raise DatabaseError(name, str(e)) from e
                delay = RETRY_BASE_DELAY * 2 ** (attempt - 1)
                logger.warning(f"{name} failed ({e}), retry {attempt}/{attempts - 1} in {delay:.1f}s")
                await asyncio.sleep(delay)
