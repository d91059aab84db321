"""
Ranking utilities for contest leaderboards.

Ordering and rank assignment are pure functions over already scored rows,
so a recompute with unchanged inputs always yields the same sequence.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from contest_engine.data_models.leaderboard import ActivityCounts, LeaderboardEntry, ParticipantSnapshot

ScoredParticipant = Tuple[ParticipantSnapshot, float, ActivityCounts]


def _fold(value: Optional[str]) -> str:
    return (value or "").casefold()


class RankingUtility:
    """Shared ordering and dense-rank logic."""
    
    @staticmethod
    def tie_break_key(participant: ParticipantSnapshot) -> Tuple[str, str, str, str, int]:
        """Case-insensitive (organization, city, region, postal code) key, id last for determinism."""
        return (
            _fold(participant.organization_name),
            _fold(participant.city),
            _fold(participant.region_code),
            _fold(participant.postal_code),
            participant.participant_id,
        )
    
    @staticmethod
    def listing_key(participant: ParticipantSnapshot) -> Tuple[str, str, str, int]:
        """Administrative listing order: organization, city, postal code."""
        return (
            _fold(participant.organization_name),
            _fold(participant.city),
            _fold(participant.postal_code),
            participant.participant_id,
        )
    
    @staticmethod
    def sort_scored(scored: Iterable[ScoredParticipant]) -> List[ScoredParticipant]:
        """Order by credits descending, then by the tie-break key ascending."""
        return sorted(
            scored,
            key=lambda row: (-row[1], RankingUtility.tie_break_key(row[0]))
        )
    
    @staticmethod
    def assign_ranks(credits: Sequence[float]) -> List[int]:
        """
        Dense ranks with shared ties over credits sorted descending.
        
        A new credit value takes its 1-based position, so [10, 10, 8, 8, 8, 5]
        yields [1, 1, 3, 3, 3, 6].
        """
        ranks = []
        for index, value in enumerate(credits):
            if index > 0 and value == credits[index - 1]:
                ranks.append(ranks[-1])
            else:
                ranks.append(index + 1)
        return ranks
    
    @staticmethod
    def rank(scored: Iterable[ScoredParticipant]) -> List[LeaderboardEntry]:
        """Sort scored participants and wrap them into ranked leaderboard entries."""
        ordered = RankingUtility.sort_scored(scored)
        ranks = RankingUtility.assign_ranks([credits for _, credits, _ in ordered])
        return [
            LeaderboardEntry(rank=rank, participant=participant, credits=credits, counts=counts)
            for rank, (participant, credits, counts) in zip(ranks, ordered)
        ]
