from typing import Optional

from contest_engine.config import Config
from contest_engine.database.database import Database
from contest_engine.services.configuration import ConfigurationService
from contest_engine.services.leaderboard import LeaderboardService
from contest_engine.services.snapshot_store import RedisSnapshotStore
from contest_engine.utils.logger import setup_logger
from contest_engine.utils.redis_utils import RedisUtils

class ContestEngine:
    """Owns the database, configuration, optional cache store and leaderboard service."""
    
    def __init__(self, database_url: Optional[str] = None, use_redis: bool = False):
        self.logger = setup_logger(__name__)
        self.db = Database(database_url)
        self.use_redis = use_redis
        self.config_service: Optional[ConfigurationService] = None
        self.snapshot_store: Optional[RedisSnapshotStore] = None
        self.leaderboard: Optional[LeaderboardService] = None
    
    async def setup(self, **service_kwargs) -> LeaderboardService:
        """Called when the engine is starting up"""
        self.logger.info("Setting up contest engine...")
        Config.validate()
        
        await self.db.initialize()
        
        self.config_service = ConfigurationService(self.db.session_factory)
        await self.config_service.load_all()
        self.logger.info("Configuration service initialized")
        
        if self.use_redis:
            client = await RedisUtils.create_redis_client()
            if client is None:
                self.logger.warning("Redis unavailable, leaderboards will be cached in memory only")
            else:
                self.snapshot_store = RedisSnapshotStore(client, ttl=Config.LEADERBOARD_CACHE_TTL)
        
        self.leaderboard = LeaderboardService(
            self.db.session_factory,
            self.config_service,
            snapshot_store=self.snapshot_store,
            **service_kwargs
        )
        self.logger.info("Contest engine setup complete!")
        return self.leaderboard
    
    async def close(self):
        """Graceful shutdown: stop recomputes, then release connections"""
        if self.leaderboard:
            await self.leaderboard.cleanup()
        if self.snapshot_store:
            await self.snapshot_store.close()
        await self.db.close()
        self.logger.info("Contest engine shut down")
