"""
Tests for credit calculation.
"""

import logging

import pytest

from contest_engine.data_models.contest import ScoreWeights
from contest_engine.data_models.leaderboard import ActivityCounts, ParticipantSnapshot
from contest_engine.utils.ranking import RankingUtility
from contest_engine.utils.scoring import ScoreCalculator


class TestScore:
    """Tests for ScoreCalculator.score."""

    def test_weighted_sum(self):
        counts = ActivityCounts(vote_count=3, shipment_count=2, unit_count=4)
        weights = ScoreWeights(vote=1, shipment=5, unit=3)
        assert ScoreCalculator.score(counts, weights) == 3 + 10 + 12

    def test_zero_weights_contribute_nothing(self):
        counts = ActivityCounts(vote_count=3, shipment_count=2, unit_count=4)
        assert ScoreCalculator.score(counts, ScoreWeights()) == 0

    def test_only_votes_weighted(self):
        counts = ActivityCounts(vote_count=2, shipment_count=9, unit_count=9)
        assert ScoreCalculator.score(counts, ScoreWeights(vote=1)) == 2

    def test_fractional_units(self):
        counts = ActivityCounts(unit_count=2.5)
        assert ScoreCalculator.score(counts, ScoreWeights(unit=2)) == pytest.approx(5.0)

    def test_negative_count_clamped_with_warning(self, caplog):
        counts = ActivityCounts(vote_count=-4, shipment_count=1)
        with caplog.at_level(logging.WARNING, logger="contest_engine.utils.scoring"):
            credits = ScoreCalculator.score(counts, ScoreWeights(vote=10, shipment=1))
        assert credits == 1
        assert "negative vote_count" in caplog.text

    def test_none_count_treated_as_zero(self):
        counts = ActivityCounts(vote_count=None, shipment_count=1)
        assert ScoreCalculator.score(counts, ScoreWeights(vote=1, shipment=1)) == 1


class TestFractionalWeights:
    """Equal sums reached through different activity mixes share a rank."""

    def test_equal_sums_compare_equal(self):
        weights = ScoreWeights(vote=0.1, shipment=0.3)
        three_votes = ScoreCalculator.score(ActivityCounts(vote_count=3), weights)
        one_shipment = ScoreCalculator.score(ActivityCounts(shipment_count=1), weights)
        assert three_votes == one_shipment == 0.3

    def test_equal_sums_share_rank(self):
        weights = ScoreWeights(vote=0.1, shipment=0.3)
        scored = [
            (ParticipantSnapshot(participant_id=1, user_id=1, organization_name="Alpha"),
             ScoreCalculator.score(ActivityCounts(vote_count=3), weights), ActivityCounts(vote_count=3)),
            (ParticipantSnapshot(participant_id=2, user_id=2, organization_name="Beta"),
             ScoreCalculator.score(ActivityCounts(shipment_count=1), weights), ActivityCounts(shipment_count=1)),
        ]
        assert [entry.rank for entry in RankingUtility.rank(scored)] == [1, 1]


class TestWeightChange:
    """Raising a weight never lowers a score."""

    def test_vote_weight_increase_is_monotonic(self):
        activity = [ActivityCounts(vote_count=v, shipment_count=s) for v, s in [(0, 1), (2, 0), (2, 3), (5, 1)]]
        before = [ScoreCalculator.score(a, ScoreWeights(vote=0, shipment=1)) for a in activity]
        after = [ScoreCalculator.score(a, ScoreWeights(vote=2, shipment=1)) for a in activity]
        for a, old, new in zip(activity, before, after):
            if a.vote_count == 0:
                assert new == old
            else:
                assert new > old
