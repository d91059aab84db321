"""
Leaderboard data models for the contest engine.

Provides immutable data transfer objects for aggregated activity, ranked
entries and the cached snapshot that readers are served.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ActivityCounts:
    """Qualifying activity of one participant inside the scoring window."""
    vote_count: int = 0
    shipment_count: int = 0
    unit_count: float = 0


@dataclass(frozen=True)
class ParticipantSnapshot:
    """Display attributes of a participant at computation time."""
    participant_id: int
    user_id: int
    organization_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    city: Optional[str] = None
    region_code: Optional[str] = None
    postal_code: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row."""
    rank: int
    participant: ParticipantSnapshot
    credits: float
    counts: ActivityCounts = field(default_factory=ActivityCounts)

    def as_dict(self, show_credits: bool = True) -> Dict[str, Any]:
        """Flat mapping for JSON and export consumers."""
        row = {
            'rank': self.rank,
            'id': self.participant.participant_id,
            'user_id': self.participant.user_id,
            'organization_name': self.participant.organization_name,
            'first_name': self.participant.first_name,
            'last_name': self.participant.last_name,
            'city': self.participant.city,
            'region_code': self.participant.region_code,
            'zipcode': self.participant.postal_code,
        }
        if show_credits:
            row.update({
                'credits': self.credits,
                'vote_count': self.counts.vote_count,
                'shipment_count': self.counts.shipment_count,
                'units_count': self.counts.unit_count,
            })
        return row

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "LeaderboardEntry":
        return cls(
            rank=row['rank'],
            participant=ParticipantSnapshot(
                participant_id=row['id'],
                user_id=row['user_id'],
                organization_name=row.get('organization_name'),
                first_name=row.get('first_name'),
                last_name=row.get('last_name'),
                city=row.get('city'),
                region_code=row.get('region_code'),
                postal_code=row.get('zipcode'),
            ),
            credits=row.get('credits', 0),
            counts=ActivityCounts(
                vote_count=row.get('vote_count', 0),
                shipment_count=row.get('shipment_count', 0),
                unit_count=row.get('units_count', 0),
            ),
        )


@dataclass(frozen=True)
class LeaderboardSnapshot:
    """Published leaderboard of one contest; replaced wholesale, never mutated."""
    contest_id: int
    entries: Tuple[LeaderboardEntry, ...]
    computed_at: datetime
    data_version: int = 0
    show_credits: bool = True
    leaderboard_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'contest_id': self.contest_id,
            'computed_at': self.computed_at.isoformat(),
            'data_version': self.data_version,
            'show_credits': self.show_credits,
            'leaderboard_enabled': self.leaderboard_enabled,
            'entries': [entry.as_dict(show_credits=True) for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaderboardSnapshot":
        return cls(
            contest_id=data['contest_id'],
            entries=tuple(LeaderboardEntry.from_dict(row) for row in data['entries']),
            computed_at=datetime.fromisoformat(data['computed_at']),
            data_version=data.get('data_version', 0),
            show_credits=data.get('show_credits', True),
            leaderboard_enabled=data.get('leaderboard_enabled', True),
        )


class ReadStatus(Enum):
    READY = "ready"              # Snapshot reflects the latest known mutation
    STALE = "stale"              # Older snapshot served while a recompute is due
    UNAVAILABLE = "unavailable"  # Nothing computed yet
    DISABLED = "disabled"        # Contest has its leaderboard switched off


@dataclass(frozen=True)
class LeaderboardRead:
    """Result of a cache read; never raises, always explicit about freshness."""
    status: ReadStatus
    snapshot: Optional[LeaderboardSnapshot] = None
    recomputing: bool = False

    @property
    def is_available(self) -> bool:
        return self.status in (ReadStatus.READY, ReadStatus.STALE)

    @property
    def entries(self) -> Tuple[LeaderboardEntry, ...]:
        if not self.is_available:
            return ()
        return self.snapshot.entries


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data."""
    entries: List[LeaderboardEntry]
    current_page: int
    total_pages: int
    total_participants: int
    contest_id: int
    status: ReadStatus = ReadStatus.READY
