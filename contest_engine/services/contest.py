"""
Contest loading and validation.

Loads a contest's rules as an immutable ContestConfig for the engine, and
validates contest settings for administrative collaborators before they are
saved. The engine itself trusts validated settings.
"""

import logging
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from contest_engine.services.base import BaseService
from contest_engine.data_models.contest import ContestConfig
from contest_engine.database.models import Contest, User
from contest_engine.utils.exceptions import ConfigurationError, ContestNotFoundError

logger = logging.getLogger(__name__)


class ContestService(BaseService):
    """Reads contests as explicit engine configuration."""
    
    async def load_config(self, contest_id: int) -> ContestConfig:
        """
        Load the rules of one contest.
        
        Raises:
            ContestNotFoundError: if the contest does not exist
        """
        async def _load():
            async with self.get_session() as session:
                query = (
                    select(Contest)
                    .where(Contest.id == contest_id)
                    .options(
                        selectinload(Contest.categories),
                        selectinload(Contest.regions),
                        selectinload(Contest.brigades),
                    )
                )
                contest = await session.scalar(query)
                if contest is None:
                    raise ContestNotFoundError(contest_id)
                return ContestConfig.from_model(contest)
        
        return await self.execute_with_retry(_load)


class ContestValidator:
    """Configuration-time checks for contest settings."""
    
    WEIGHT_FIELDS = ('credits_by_vote', 'credits_by_shipment', 'credits_by_unit')
    
    @staticmethod
    def check_dates(contest: Contest) -> List[str]:
        errors = []
        if contest.first_day is None:
            errors.append("first_day can't be blank")
        if contest.last_day is None:
            errors.append("last_day can't be blank")
        if contest.first_day and contest.last_day and contest.last_day <= contest.first_day:
            errors.append("last_day must be after first_day")
        return errors
    
    @staticmethod
    def check_weights(contest: Contest) -> List[str]:
        errors = []
        for field_name in ContestValidator.WEIGHT_FIELDS:
            value = getattr(contest, field_name)
            if value is None:
                errors.append(f"{field_name} can't be blank")
            elif value < 0:
                errors.append(f"{field_name} must be greater than or equal to 0")
        return errors
    
    @staticmethod
    async def check_listed_users(session: "AsyncSession", contest: Contest) -> List[str]:
        """Every listed ID must be numeric and belong to an existing user."""
        tokens = contest.list_ids
        if not tokens:
            return []
        
        numeric = {int(token) for token in tokens if token.isdigit()}
        known = set()
        if numeric:
            result = await session.execute(select(User.id).where(User.id.in_(sorted(numeric))))
            known = {row[0] for row in result}
        
        wrong_ids = [token for token in tokens if not token.isdigit() or int(token) not in known]
        if not wrong_ids:
            return []
        return [f"users_list_ids: user IDs not found: {', '.join(wrong_ids)}"]
    
    @classmethod
    async def validate(cls, session: "AsyncSession", contest: Contest) -> List[str]:
        """Return every configuration error of the contest (empty when valid)."""
        errors = cls.check_dates(contest) + cls.check_weights(contest)
        errors += await cls.check_listed_users(session, contest)
        return errors
    
    @classmethod
    async def ensure_valid(cls, session: "AsyncSession", contest: Contest) -> None:
        """
        Raises:
            ConfigurationError: listing every problem found
        """
        errors = await cls.validate(session, contest)
        if errors:
            logger.info(f"Rejected configuration for contest '{contest.name}': {errors}")
            raise ConfigurationError(errors)
