"""
Redis mirror for published leaderboard snapshots.

Lets other processes and export collaborators read the latest leaderboard of
a contest, and lets a restarted engine warm its in-memory cache. The mirror
is best-effort: the in-memory publish never depends on it.
"""

import json
import logging
from typing import Optional

from redis.exceptions import RedisError

from contest_engine.constants import CacheConstants
from contest_engine.data_models.leaderboard import LeaderboardSnapshot

logger = logging.getLogger(__name__)


class RedisSnapshotStore:
    """JSON snapshot storage keyed per contest."""
    
    def __init__(self, redis_client, ttl: Optional[int] = None):
        self.redis_client = redis_client
        self.ttl = ttl or None  # 0 means no expiry
    
    @staticmethod
    def key(contest_id: int) -> str:
        return CacheConstants.SNAPSHOT_KEY_TEMPLATE.format(contest_id=contest_id)
    
    async def save(self, snapshot: LeaderboardSnapshot) -> bool:
        """Write the snapshot; returns False when the store is unreachable."""
        try:
            await self.redis_client.set(
                self.key(snapshot.contest_id),
                json.dumps(snapshot.to_dict()),
                ex=self.ttl
            )
            return True
        except RedisError as e:
            logger.error(f"Failed to mirror leaderboard for contest {snapshot.contest_id}: {e}")
            return False
    
    async def load(self, contest_id: int) -> Optional[LeaderboardSnapshot]:
        """Read a mirrored snapshot; None when missing, unreadable or the store is down."""
        try:
            raw = await self.redis_client.get(self.key(contest_id))
        except RedisError as e:
            logger.error(f"Failed to read mirrored leaderboard for contest {contest_id}: {e}")
            return None
        
        if raw is None:
            return None
        
        try:
            return LeaderboardSnapshot.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable mirrored leaderboard for contest {contest_id}: {e}")
            return None
    
    async def delete(self, contest_id: int) -> None:
        try:
            await self.redis_client.delete(self.key(contest_id))
        except RedisError as e:
            logger.error(f"Failed to delete mirrored leaderboard for contest {contest_id}: {e}")
    
    async def close(self):
        """Clean up Redis connection."""
        await self.redis_client.aclose()
