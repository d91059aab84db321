"""
Contest data models for the leaderboard engine.

An immutable view of a contest's scoring and eligibility rules. Every engine
operation receives one of these explicitly instead of reading ORM state or an
ambient request context.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import FrozenSet, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from contest_engine.database.models import Contest

logger = logging.getLogger(__name__)


class EligibilityMode(Enum):
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"


class ContestStatus(Enum):
    UPCOMING = "upcoming"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class ScoreWeights:
    """Credits awarded per unit of each activity type."""
    vote: float = 0.0
    shipment: float = 0.0
    unit: float = 0.0


@dataclass(frozen=True)
class ContestConfig:
    """Scoring and eligibility rules of one contest."""
    contest_id: int
    first_day: date
    last_day: date
    weights: ScoreWeights
    eligibility_mode: EligibilityMode = EligibilityMode.BLACKLIST
    listed_user_ids: FrozenSet[int] = field(default_factory=frozenset)
    category_ids: FrozenSet[int] = field(default_factory=frozenset)
    region_ids: FrozenSet[int] = field(default_factory=frozenset)
    brigade_ids: FrozenSet[int] = field(default_factory=frozenset)
    name: str = ""
    leaderboard_enabled: bool = True
    show_credits: bool = True
    updated_at: Optional[datetime] = None

    @property
    def is_whitelist(self) -> bool:
        return self.eligibility_mode == EligibilityMode.WHITELIST

    def status(self, on_date: date) -> ContestStatus:
        """Lifecycle status of the contest on a given date."""
        if on_date < self.first_day:
            return ContestStatus.UPCOMING
        if on_date > self.last_day:
            return ContestStatus.FINISHED
        return ContestStatus.RUNNING

    @classmethod
    def from_model(cls, contest: "Contest") -> "ContestConfig":
        """
        Build a config from a Contest row.

        The categories, regions and brigades relationships must already be
        loaded. Listed IDs that are not integers are skipped; rejecting them
        is the validator's job at configuration time.
        """
        listed_user_ids = set()
        for token in contest.list_ids:
            if token.isdigit():
                listed_user_ids.add(int(token))
            else:
                logger.warning(f"Contest {contest.id} has non-numeric listed user ID '{token}', ignoring")

        return cls(
            contest_id=contest.id,
            name=contest.name or "",
            first_day=contest.first_day,
            last_day=contest.last_day,
            weights=ScoreWeights(
                vote=contest.credits_by_vote or 0.0,
                shipment=contest.credits_by_shipment or 0.0,
                unit=contest.credits_by_unit or 0.0,
            ),
            eligibility_mode=EligibilityMode.WHITELIST if contest.users_list_white else EligibilityMode.BLACKLIST,
            listed_user_ids=frozenset(listed_user_ids),
            category_ids=frozenset(c.id for c in contest.categories),
            region_ids=frozenset(r.id for r in contest.regions),
            brigade_ids=frozenset(b.id for b in contest.brigades),
            leaderboard_enabled=bool(contest.leaderboard_enabled),
            show_credits=bool(contest.show_credits),
            updated_at=contest.updated_at,
        )
