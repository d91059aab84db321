"""
Eligibility filtering for contest leaderboards.

Selects the participants allowed to compete in a contest from the contest's
whitelist/blacklist of owning user IDs and its optional category and region
constraints. The query built here is shared by the recompute pipeline and by
participant search so both see the same eligibility set.
"""

import logging
from typing import List, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.sql import Select
from contest_engine.services.base import BaseService
from contest_engine.data_models.contest import ContestConfig
from contest_engine.data_models.leaderboard import ParticipantSnapshot
from contest_engine.database.models import Participant, User, Region

logger = logging.getLogger(__name__)


class EligibilityService(BaseService):
    """Computes the eligibility set of a contest."""
    
    @staticmethod
    def build_query(contest: ContestConfig) -> Select:
        """
        Participant query restricted to the contest's eligibility rules.
        
        Whitelist keeps only listed owners, blacklist drops them; an empty list
        restricts nothing. Category and region constraints apply in both modes.
        """
        query = (
            select(
                Participant.id.label('participant_id'),
                Participant.user_id,
                Participant.organization_name,
                User.first_name,
                User.last_name,
                Participant.city,
                Region.region_code,
                Participant.zipcode,
            )
            .select_from(Participant)
            .join(User, Participant.user_id == User.id)
            .outerjoin(Region, Participant.region_id == Region.id)
        )
        
        if contest.listed_user_ids:
            listed = sorted(contest.listed_user_ids)
            if contest.is_whitelist:
                query = query.where(Participant.user_id.in_(listed))
            else:
                query = query.where(Participant.user_id.not_in(listed))
        
        if contest.category_ids:
            query = query.where(Participant.category_id.in_(sorted(contest.category_ids)))
        
        if contest.region_ids:
            query = query.where(Participant.region_id.in_(sorted(contest.region_ids)))
        
        return query
    
    @staticmethod
    def with_listing_order(query: Select) -> Select:
        """Deterministic administrative order: organization, city, postal code, case-insensitive."""
        return query.order_by(
            func.lower(Participant.organization_name),
            func.lower(Participant.city),
            func.lower(Participant.zipcode),
            Participant.id,
        )
    
    @staticmethod
    def to_snapshot(row) -> ParticipantSnapshot:
        return ParticipantSnapshot(
            participant_id=row.participant_id,
            user_id=row.user_id,
            organization_name=row.organization_name,
            first_name=row.first_name,
            last_name=row.last_name,
            city=row.city,
            region_code=row.region_code,
            postal_code=row.zipcode,
        )
    
    async def _fetch(self, query: Select, session: Optional["AsyncSession"]) -> List[ParticipantSnapshot]:
        if session is not None:
            result = await session.execute(query)
            return [self.to_snapshot(row) for row in result]
        async with self.get_session() as own_session:
            result = await own_session.execute(query)
            return [self.to_snapshot(row) for row in result]
    
    async def eligible_participants(
        self, contest: ContestConfig, session: Optional["AsyncSession"] = None
    ) -> Set[ParticipantSnapshot]:
        """Unordered eligibility set of the contest."""
        participants = await self._fetch(self.build_query(contest), session)
        logger.debug(f"Contest {contest.contest_id}: {len(participants)} eligible participants")
        return set(participants)
    
    async def list_eligible(
        self, contest: ContestConfig, session: Optional["AsyncSession"] = None
    ) -> List[ParticipantSnapshot]:
        """Eligibility set in administrative listing order."""
        return await self._fetch(self.with_listing_order(self.build_query(contest)), session)
