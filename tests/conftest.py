"""
Shared fixtures: a temporary SQLite database per test and seeding helpers.
"""

import os
import tempfile

# Keep log files out of the working tree; must happen before Config is imported
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "contest_engine_test_logs"))

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytest
import pytest_asyncio
from sqlalchemy import select

from contest_engine.database.database import Database
from contest_engine.database.models import (
    Brigade, Category, Collection, Contest, ContestVote, Participant, Region, Shipment, User
)
from contest_engine.services.configuration import ConfigurationService
from contest_engine.services.leaderboard import LeaderboardService

NOW = datetime(2026, 5, 15, 12, 0, 0)
TODAY = NOW.date()
IN_WINDOW = NOW - timedelta(hours=1)
BEFORE_WINDOW = NOW - timedelta(days=2)


class Seeder:
    """Creates source rows the way external collaborators would."""
    
    def __init__(self, db: Database):
        self.db = db
        self._counter = 0
    
    def _next(self) -> int:
        self._counter += 1
        return self._counter
    
    @staticmethod
    async def _get_or_create(session, model, lookup: dict):
        instance = await session.scalar(select(model).filter_by(**lookup))
        if instance is None:
            instance = model(**lookup)
            session.add(instance)
            await session.flush()
        return instance
    
    async def user(self, first_name: str = "Pat", last_name: str = "Lee") -> int:
        async with self.db.transaction() as session:
            user = User(first_name=first_name, last_name=last_name, email=f"user{self._next()}@example.com")
            session.add(user)
            await session.flush()
            return user.id
    
    async def participant(
        self,
        organization_name: str,
        city: str = "Springfield",
        zipcode: str = "10001",
        region: Optional[str] = None,
        category: Optional[str] = None,
        first_name: str = "Pat",
        last_name: str = "Lee",
    ) -> Participant:
        async with self.db.transaction() as session:
            user = User(first_name=first_name, last_name=last_name, email=f"user{self._next()}@example.com")
            session.add(user)
            await session.flush()
            participant = Participant(
                user_id=user.id,
                organization_name=organization_name,
                city=city,
                zipcode=zipcode,
            )
            if region:
                participant.region_id = (await self._get_or_create(session, Region, {'region_code': region})).id
            if category:
                participant.category_id = (await self._get_or_create(session, Category, {'name': category})).id
            session.add(participant)
            await session.flush()
            return participant
    
    async def contest(
        self,
        credits_by_vote: float = 1,
        credits_by_shipment: float = 0,
        credits_by_unit: float = 0,
        whitelist: bool = False,
        users_list_ids: Optional[str] = None,
        categories: Iterable[str] = (),
        regions: Iterable[str] = (),
        brigades: Iterable[str] = (),
        first_day: date = TODAY - timedelta(days=7),
        last_day: date = TODAY + timedelta(days=7),
        **fields,
    ) -> int:
        async with self.db.transaction() as session:
            contest = Contest(
                name=fields.pop('name', f"Contest {self._next()}"),
                first_day=first_day,
                last_day=last_day,
                credits_by_vote=credits_by_vote,
                credits_by_shipment=credits_by_shipment,
                credits_by_unit=credits_by_unit,
                users_list_white=whitelist,
                users_list_ids=users_list_ids,
                **fields,
            )
            contest.categories = [await self._get_or_create(session, Category, {'name': n}) for n in categories]
            contest.regions = [await self._get_or_create(session, Region, {'region_code': c}) for c in regions]
            contest.brigades = [await self._get_or_create(session, Brigade, {'name': n}) for n in brigades]
            session.add(contest)
            await session.flush()
            return contest.id
    
    async def update_contest(self, contest_id: int, **fields) -> None:
        async with self.db.transaction() as session:
            contest = await session.get(Contest, contest_id)
            for key, value in fields.items():
                setattr(contest, key, value)
    
    async def vote(self, contest_id: int, participant_id: int, verified: bool = True,
                   created_at: datetime = IN_WINDOW) -> None:
        async with self.db.transaction() as session:
            session.add(ContestVote(
                contest_id=contest_id,
                participant_id=participant_id,
                email=f"voter{self._next()}@example.com",
                verified=verified,
                created_at=created_at,
            ))
    
    async def collection(self, participant_id: int, brigade: str = "Snack Bags", is_active: bool = True) -> int:
        async with self.db.transaction() as session:
            brigade_row = await self._get_or_create(session, Brigade, {'name': brigade})
            collection = Collection(participant_id=participant_id, brigade_id=brigade_row.id, is_active=is_active)
            session.add(collection)
            await session.flush()
            return collection.id
    
    async def shipment(self, collection_id: int, units: Optional[float] = None,
                       created_at: datetime = IN_WINDOW) -> None:
        async with self.db.transaction() as session:
            session.add(Shipment(collection_id=collection_id, units_collected=units, created_at=created_at))


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'contests.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest_asyncio.fixture
async def config_service(db):
    service = ConfigurationService(db.session_factory)
    await service.load_all()
    return service


@pytest_asyncio.fixture
async def leaderboard_service(db, config_service):
    service = LeaderboardService(db.session_factory, config_service, clock=lambda: NOW)
    yield service
    await service.cleanup()
