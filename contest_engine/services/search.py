"""
Participant typeahead search for a contest.

Case-insensitive substring lookup over organization name, owner full name,
postal code, city and region code, limited to the contest's eligibility set.
Results are small and bounded, so queries run live without caching.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.sql import Select
from contest_engine.constants import SearchConstants
from contest_engine.services.base import BaseService
from contest_engine.services.eligibility import EligibilityService
from contest_engine.data_models.contest import ContestConfig
from contest_engine.data_models.leaderboard import ParticipantSnapshot
from contest_engine.database.models import Participant, User, Region

logger = logging.getLogger(__name__)


class ParticipantSearchService(BaseService):
    """Top-K participant lookup restricted to eligible participants."""
    
    def __init__(self, session_factory, config_service=None):
        super().__init__(session_factory)
        self.config_service = config_service
    
    @staticmethod
    def escape_like(value: str) -> str:
        """Escape LIKE wildcards so user input only ever matches literally."""
        escape = SearchConstants.LIKE_ESCAPE
        return (
            value.replace(escape, escape * 2)
            .replace('%', f'{escape}%')
            .replace('_', f'{escape}_')
        )
    
    @staticmethod
    def build_query(contest: ContestConfig, query_string: str, limit: int) -> Select:
        pattern = f"%{ParticipantSearchService.escape_like((query_string or '').strip())}%"
        escape = SearchConstants.LIKE_ESCAPE
        full_name = func.coalesce(User.first_name, '') + ' ' + func.coalesce(User.last_name, '')
        
        query = EligibilityService.build_query(contest).where(
            or_(
                Participant.organization_name.ilike(pattern, escape=escape),
                full_name.ilike(pattern, escape=escape),
                Participant.zipcode.ilike(pattern, escape=escape),
                Participant.city.ilike(pattern, escape=escape),
                Region.region_code.ilike(pattern, escape=escape),
            )
        )
        return EligibilityService.with_listing_order(query).limit(limit)
    
    def _limit(self, limit: Optional[int]) -> int:
        if limit is not None:
            if limit < 1:
                raise ValueError("limit must be a positive integer")
            return limit
        if self.config_service is not None:
            return int(self.config_service.get('search.limit'))
        return SearchConstants.DEFAULT_LIMIT
    
    async def search(
        self, contest: ContestConfig, query_string: str, limit: Optional[int] = None
    ) -> List[ParticipantSnapshot]:
        """Return up to K eligible participants matching the query."""
        query = self.build_query(contest, query_string, self._limit(limit))
        async with self.get_session() as session:
            result = await session.execute(query)
            matches = [EligibilityService.to_snapshot(row) for row in result]
        logger.debug(f"Contest {contest.contest_id}: search '{query_string}' matched {len(matches)}")
        return matches
