"""
Redis connection helpers for the leaderboard snapshot store.

Outside DEBUG mode a Redis URL must use TLS (rediss://) and carry
credentials. In DEBUG mode a local server is assumed when no URL is set.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from contest_engine.config import Config

logger = logging.getLogger(__name__)

DEV_REDIS_URL = 'redis://localhost:6379'
LOCAL_PREFIXES = ('redis://localhost', 'redis://127.0.0.1', 'rediss://')


class RedisUtils:
    """Builds Redis clients that satisfy the deployment's security rules."""
    
    @staticmethod
    def is_secure_url(redis_url: Optional[str]) -> bool:
        if not redis_url:
            return False
        if Config.DEBUG:
            if not redis_url.startswith(LOCAL_PREFIXES):
                logger.warning(f"Accepting non-local plaintext Redis URL in DEBUG mode: {redis_url}")
            return True
        if not redis_url.startswith('rediss://'):
            logger.error("Redis outside DEBUG mode requires the rediss:// (TLS) scheme")
            return False
        if '@' not in redis_url:
            logger.error("Redis outside DEBUG mode requires credentials in REDIS_URL")
            return False
        return True
    
    @staticmethod
    def resolve_url() -> Optional[str]:
        """Configured REDIS_URL when it passes the checks, the local default in DEBUG, else None."""
        if Config.REDIS_URL:
            return Config.REDIS_URL if RedisUtils.is_secure_url(Config.REDIS_URL) else None
        if Config.DEBUG:
            logger.warning(f"REDIS_URL not set, falling back to {DEV_REDIS_URL} (DEBUG only)")
            return DEV_REDIS_URL
        logger.error("REDIS_URL not set; leaderboard snapshots will not be mirrored")
        return None
    
    @staticmethod
    async def create_redis_client() -> Optional[redis.Redis]:
        """Connected client, or None when Redis is unconfigured, insecure or unreachable."""
        redis_url = RedisUtils.resolve_url()
        if redis_url is None:
            return None
        
        client = redis.from_url(redis_url)
        try:
            await client.ping()
        except RedisError as e:
            logger.error(f"Redis at {redis_url.rsplit('@', 1)[-1]} unreachable: {e}")
            await client.aclose()
            return None
        logger.info("Connected to Redis snapshot store")
        return client
