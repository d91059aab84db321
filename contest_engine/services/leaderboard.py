"""
Leaderboard service: the engine's entry point for external collaborators.

Inbound triggers (vote verification, shipment creation, administrative
updates) invalidate a contest's cached leaderboard; presentation and export
collaborators read the cached snapshot, paginated or as a top-N summary, and
the typeahead UI searches participants.

Recompute pipeline per contest:
    EligibilityService -> ActivityService (per participant) ->
    ScoreCalculator -> RankingUtility -> LeaderboardCache publish
"""

import logging
from typing import Callable, List, Optional
from datetime import datetime

from contest_engine.constants import PaginationConstants
from contest_engine.services.base import BaseService
from contest_engine.services.activity import ActivityService, ScoringWindow
from contest_engine.services.contest import ContestService
from contest_engine.services.eligibility import EligibilityService
from contest_engine.services.leaderboard_cache import LeaderboardCache
from contest_engine.services.search import ParticipantSearchService
from contest_engine.data_models.leaderboard import (
    LeaderboardEntry, LeaderboardPage, LeaderboardRead, LeaderboardSnapshot, ParticipantSnapshot
)
from contest_engine.utils.exceptions import RecomputeFailedError
from contest_engine.utils.ranking import RankingUtility
from contest_engine.utils.scoring import ScoreCalculator
from contest_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class LeaderboardService(BaseService):
    """Facade wiring eligibility, aggregation, scoring, ranking and the cache."""
    
    def __init__(
        self,
        session_factory,
        config_service,
        snapshot_store=None,
        window: Optional[ScoringWindow] = None,
        clock: Callable[[], datetime] = utcnow,
        on_recompute_start=None,
        on_recompute_complete=None,
    ):
        super().__init__(session_factory)
        self.config_service = config_service
        self.clock = clock
        self.contest_service = ContestService(session_factory)
        self.eligibility_service = EligibilityService(session_factory)
        self.activity_service = ActivityService(session_factory, config_service, window)
        self.search_service = ParticipantSearchService(session_factory, config_service)
        self.cache = LeaderboardCache(
            self.compute_snapshot,
            snapshot_store=snapshot_store,
            on_recompute_start=on_recompute_start,
            on_recompute_complete=on_recompute_complete,
        )
    
    async def compute_snapshot(self, contest_id: int) -> LeaderboardSnapshot:
        """
        Run the full pipeline for one contest without touching the cache.
        
        Raises:
            ContestNotFoundError: if the contest does not exist
            RecomputeFailedError: if any participant's activity could not be read
        """
        contest = await self.contest_service.load_config(contest_id)
        as_of = self.clock()
        
        participants = await self.eligibility_service.eligible_participants(contest)
        counts, unavailable = await self.activity_service.aggregate_many(
            contest, sorted(p.participant_id for p in participants), as_of
        )
        if unavailable:
            # Publishing without these participants would show wrong ranks
            raise RecomputeFailedError(contest_id, unavailable)
        
        scored = [
            (participant, ScoreCalculator.score(counts[participant.participant_id], contest.weights),
             counts[participant.participant_id])
            for participant in participants
        ]
        entries = RankingUtility.rank(scored)
        
        return LeaderboardSnapshot(
            contest_id=contest_id,
            entries=tuple(entries),
            computed_at=as_of,
            show_credits=contest.show_credits,
            leaderboard_enabled=contest.leaderboard_enabled,
        )
    
    # Inbound triggers
    
    def on_activity_mutation(self, contest_id: int) -> None:
        """A vote was verified or a shipment recorded for the contest."""
        logger.debug(f"Activity mutation for contest {contest_id}")
        self.cache.invalidate(contest_id)
    
    def on_contest_settings_changed(self, contest_id: int) -> None:
        """Weights, eligibility lists or filters of the contest changed."""
        logger.info(f"Settings changed for contest {contest_id}, invalidating leaderboard")
        self.cache.invalidate(contest_id)
    
    # Outbound reads
    
    def get_leaderboard(self, contest_id: int) -> LeaderboardRead:
        """Cached leaderboard or an explicit unavailable marker; never raises."""
        return self.cache.get(contest_id)
    
    def get_page(self, contest_id: int, page: int = 1, page_size: Optional[int] = None) -> LeaderboardPage:
        """Paginated slice of the cached leaderboard."""
        if page_size is None:
            page_size = int(self.config_service.get('leaderboard.page_size'))
        if not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer")
        if not isinstance(page_size, int) or page_size < 1 or page_size > PaginationConstants.MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {PaginationConstants.MAX_PAGE_SIZE}")
        
        read = self.get_leaderboard(contest_id)
        entries = read.entries
        total_count = len(entries)
        offset = (page - 1) * page_size
        
        return LeaderboardPage(
            entries=list(entries[offset:offset + page_size]),
            current_page=page,
            total_pages=(total_count + page_size - 1) // page_size if total_count > 0 else 1,
            total_participants=total_count,
            contest_id=contest_id,
            status=read.status,
        )
    
    def get_top(self, contest_id: int, count: Optional[int] = None) -> List[LeaderboardEntry]:
        """First entries of the cached leaderboard (empty when unavailable)."""
        if count is None:
            count = int(self.config_service.get('leaderboard.top_count'))
        return list(self.get_leaderboard(contest_id).entries[:count])
    
    async def search_participants(self, contest_id: int, query: str) -> List[ParticipantSnapshot]:
        """Typeahead lookup among the contest's eligible participants."""
        contest = await self.contest_service.load_config(contest_id)
        return await self.search_service.search(contest, query)
    
    async def recompute(self, contest_id: int) -> LeaderboardSnapshot:
        """Recompute now (joining any in-flight run) and return the published snapshot."""
        return await self.cache.recompute(contest_id)
    
    async def cleanup(self):
        """Cleanup background recomputes for graceful shutdown."""
        await self.cache.cleanup()
