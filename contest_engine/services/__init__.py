"""
Services package for the contest leaderboard engine.
"""

from .base import BaseService
from .leaderboard import LeaderboardService

__all__ = ['BaseService', 'LeaderboardService']
