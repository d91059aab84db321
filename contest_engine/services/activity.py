"""
Activity aggregation for contest leaderboards.

Counts the qualifying activity of one participant inside the scoring window:
verified votes, shipments under the contest's brigades, and the units those
shipments collected. Each source is queried in its own session so that one
unreachable source cannot leave the others half-read; any failure fails the
participant's aggregation as a whole.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from contest_engine.services.base import BaseService
from contest_engine.data_models.contest import ContestConfig
from contest_engine.data_models.leaderboard import ActivityCounts
from contest_engine.database.models import ContestVote, Shipment, Collection
from contest_engine.config import Config
from contest_engine.utils.exceptions import ConfigurationError, PartialDataUnavailable
from contest_engine.utils.time_utils import start_of_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWindow:
    """
    Time window in which activity counts toward the leaderboard.
    
    Rolling mode (look_back set): [as_of - look_back, as_of + slack].
    Contest mode (look_back None): [first_day 00:00, last_day 00:00 + slack].
    """
    look_back: Optional[timedelta] = timedelta(days=1)
    slack: timedelta = timedelta(days=1)
    
    def bounds(self, contest: ContestConfig, as_of: datetime) -> Tuple[datetime, datetime]:
        if self.look_back is None:
            return start_of_day(contest.first_day), start_of_day(contest.last_day) + self.slack
        return as_of - self.look_back, as_of + self.slack
    
    @staticmethod
    def _hours(config_service, key: str) -> timedelta:
        value = config_service.get(key)
        try:
            hours = float(value)
        except (TypeError, ValueError):
            raise ConfigurationError([f"{key} must be a number of hours, got {value!r}"]) from None
        if hours < 0:
            raise ConfigurationError([f"{key} must not be negative, got {hours:g}"])
        return timedelta(hours=hours)
    
    @classmethod
    def from_config(cls, config_service) -> "ScoringWindow":
        """
        Build the window from runtime configuration (falls back to Config defaults).
    
        Raises:
            ConfigurationError: for an unknown mode or a negative or non-numeric duration
        """
        mode = config_service.get('leaderboard.window_mode')
        if mode not in Config.WINDOW_MODES:
            raise ConfigurationError([
                f"leaderboard.window_mode must be one of {', '.join(Config.WINDOW_MODES)}, got {mode!r}"
            ])
        slack = cls._hours(config_service, 'leaderboard.slack_hours')
        if mode == 'contest':
            return cls(look_back=None, slack=slack)
        return cls(look_back=cls._hours(config_service, 'leaderboard.window_hours'), slack=slack)


class ActivityService(BaseService):
    """Aggregates in-window activity counts per participant."""
    
    def __init__(self, session_factory, config_service=None, window: Optional[ScoringWindow] = None):
        super().__init__(session_factory)
        self.config_service = config_service
        self._window = window
    
    @property
    def window(self) -> ScoringWindow:
        """Explicit window if given, otherwise resolved from runtime configuration on each call."""
        if self._window is not None:
            return self._window
        if self.config_service is not None:
            return ScoringWindow.from_config(self.config_service)
        return ScoringWindow()
    
    async def _count_votes(
        self, session: "AsyncSession", contest: ContestConfig, participant_id: int,
        start: datetime, end: datetime
    ) -> int:
        query = select(func.count(ContestVote.id)).where(
            ContestVote.contest_id == contest.contest_id,
            ContestVote.participant_id == participant_id,
            ContestVote.verified == True,
            ContestVote.created_at.between(start, end),
        )
        return await session.scalar(query) or 0
    
    @staticmethod
    def _allowed_shipments(query, contest: ContestConfig, participant_id: int, start: datetime, end: datetime):
        """Restrict a shipment query to the participant's active collections under the contest's brigades."""
        query = (
            query.select_from(Shipment)
            .join(Collection, Shipment.collection_id == Collection.id)
            .where(
                Collection.participant_id == participant_id,
                Collection.is_active == True,
                Shipment.created_at.between(start, end),
            )
        )
        if contest.brigade_ids:
            query = query.where(Collection.brigade_id.in_(sorted(contest.brigade_ids)))
        return query
    
    async def _count_shipments(
        self, session: "AsyncSession", contest: ContestConfig, participant_id: int,
        start: datetime, end: datetime
    ) -> int:
        query = self._allowed_shipments(select(func.count(Shipment.id)), contest, participant_id, start, end)
        return await session.scalar(query) or 0
    
    async def _sum_units(
        self, session: "AsyncSession", contest: ContestConfig, participant_id: int,
        start: datetime, end: datetime
    ) -> float:
        query = self._allowed_shipments(
            select(func.coalesce(func.sum(Shipment.units_collected), 0)),
            contest, participant_id, start, end
        )
        return await session.scalar(query) or 0
    
    async def _read_source(self, source: str, reader: Callable[["AsyncSession"], Awaitable], failures: List[str]):
        try:
            async with self.get_session() as session:
                return await reader(session)
        except SQLAlchemyError as e:
            logger.error(f"Activity source '{source}' failed: {e}", exc_info=True)
            failures.append(source)
            return None
    
    async def aggregate(
        self, contest: ContestConfig, participant_id: int, as_of: datetime,
        window: Optional[ScoringWindow] = None
    ) -> ActivityCounts:
        """
        Aggregate in-window activity of one participant.
        
        Raises:
            PartialDataUnavailable: if any activity source could not be read
            ConfigurationError: if the runtime window settings are invalid
        """
        start, end = (window or self.window).bounds(contest, as_of)
        failures: List[str] = []
        
        votes = await self._read_source(
            'votes', lambda s: self._count_votes(s, contest, participant_id, start, end), failures
        )
        shipments = await self._read_source(
            'shipments', lambda s: self._count_shipments(s, contest, participant_id, start, end), failures
        )
        units = await self._read_source(
            'units', lambda s: self._sum_units(s, contest, participant_id, start, end), failures
        )
        
        if failures:
            raise PartialDataUnavailable(participant_id, failures)
        
        return ActivityCounts(vote_count=votes, shipment_count=shipments, unit_count=units)
    
    async def aggregate_many(
        self, contest: ContestConfig, participant_ids: Iterable[int], as_of: datetime
    ) -> Tuple[Dict[int, ActivityCounts], List[int]]:
        """
        Aggregate every participant independently.
        
        Returns:
            (counts by participant ID, IDs whose aggregation failed)
            
        Raises:
            ConfigurationError: if the runtime window settings are invalid
        """
        window = self.window  # resolved once per cycle
        counts: Dict[int, ActivityCounts] = {}
        unavailable: List[int] = []
        for participant_id in participant_ids:
            try:
                counts[participant_id] = await self.aggregate(contest, participant_id, as_of, window)
            except PartialDataUnavailable as e:
                logger.warning(f"Contest {contest.contest_id}: {e}")
                unavailable.append(participant_id)
        return counts, unavailable
