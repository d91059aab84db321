import logging

from contest_engine.constants import ScoringConstants
from contest_engine.data_models.contest import ScoreWeights
from contest_engine.data_models.leaderboard import ActivityCounts

logger = logging.getLogger(__name__)

class ScoreCalculator:
    """Turns aggregated activity into credits for the contest leaderboard"""
    
    @staticmethod
    def clamp_count(value, field_name: str = "count"):
        """
        Clamp a negative activity count to zero.
        
        Counts come from COUNT/SUM queries and can never be negative with
        validated inputs; a negative value points to an upstream bug, so it is
        logged rather than raised.
        """
        if value is None:
            return 0
        if value < 0:
            logger.warning(f"Internal consistency warning: negative {field_name} ({value}) clamped to 0")
            return 0
        return value
    
    @staticmethod
    def score(counts: ActivityCounts, weights: ScoreWeights) -> float:
        """
        Calculate credits for one participant
        
        Args:
            counts: Aggregated activity inside the scoring window
            weights: Contest weight configuration
            
        Returns:
            credits = vote*votes + shipment*shipments + unit*units, rounded to
            CREDIT_PRECISION decimals so float noise cannot split a tie
        """
        votes = ScoreCalculator.clamp_count(counts.vote_count, "vote_count")
        shipments = ScoreCalculator.clamp_count(counts.shipment_count, "shipment_count")
        units = ScoreCalculator.clamp_count(counts.unit_count, "unit_count")
        
        return round(
            weights.vote * votes +
            weights.shipment * shipments +
            weights.unit * units,
            ScoringConstants.CREDIT_PRECISION
        )
