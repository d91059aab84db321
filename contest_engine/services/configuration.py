"""
Runtime settings for the leaderboard engine.

Settings are JSON values stored in the `configurations` table and kept in an
in-memory cache. Each change is written to the audit log. Keys without a
stored value fall back to the environment defaults from Config.
"""

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select

from contest_engine.config import Config
from contest_engine.services.base import BaseService
from contest_engine.database.models import Configuration, AuditLog

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    'leaderboard.window_mode': Config.LEADERBOARD_WINDOW_MODE,
    'leaderboard.window_hours': Config.LEADERBOARD_WINDOW_HOURS,
    'leaderboard.slack_hours': Config.LEADERBOARD_SLACK_HOURS,
    'leaderboard.page_size': Config.LEADERBOARD_PAGE_SIZE,
    'leaderboard.top_count': Config.LEADERBOARD_TOP_COUNT,
    'search.limit': Config.SEARCH_LIMIT,
}


def _decode_previous(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return {"error": "invalid JSON", "raw": raw}


class ConfigurationService(BaseService):
    """Cached key/value settings with an audit trail of changes."""
    
    def __init__(self, session_factory):
        super().__init__(session_factory)
        self._cache: Dict[str, Any] = {}
    
    async def load_all(self):
        """Replace the cache with every stored value that decodes."""
        async with self.get_session() as session:
            rows = (await session.execute(select(Configuration.key, Configuration.value))).all()
        
        loaded = {}
        for key, raw in rows:
            try:
                loaded[key] = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring stored setting '{key}': value is not valid JSON")
        self._cache = loaded
        logger.info(f"Loaded {len(loaded)} runtime settings")
    
    def get(self, key: str, default: Any = None) -> Any:
        """Stored value, else `default`, else the environment default for known keys."""
        if key in self._cache:
            return self._cache[key]
        return default if default is not None else DEFAULTS.get(key)
    
    async def set(self, key: str, value: Any, user_id: int):
        """
        Store a setting and record the change.
        
        Args:
            key: Setting key, e.g. 'search.limit'
            value: Any JSON-serializable value
            user_id: Administrator making the change
        """
        encoded = json.dumps(value)
        async with self.get_session() as session:
            row = await session.get(Configuration, key)
            previous = _decode_previous(row.value if row is not None else None)
            if row is None:
                session.add(Configuration(key=key, value=encoded))
            else:
                row.value = encoded
            session.add(AuditLog(
                user_id=user_id,
                action='config_set',
                details=json.dumps({'key': key, 'old_value': previous, 'new_value': value}),
            ))
        
        self._cache[key] = value
        logger.info(f"Setting '{key}' changed by user {user_id}")
    
    def list_all(self) -> Dict[str, Any]:
        """Effective settings: defaults overlaid with stored values."""
        return {**DEFAULTS, **self._cache}
    
    def get_by_category(self, category: str) -> Dict[str, Any]:
        """Effective settings under '<category>.', keyed without the prefix."""
        prefix = f"{category}."
        return {
            key[len(prefix):]: value
            for key, value in self.list_all().items()
            if key.startswith(prefix)
        }
