import os
from dotenv import load_dotenv

from contest_engine.constants import PaginationConstants, SearchConstants

load_dotenv()

class Config:
    """Engine configuration settings"""
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///contests.db')
    
    # Runtime settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    
    # Cache store (optional Redis mirror of published leaderboards)
    REDIS_URL = os.getenv('REDIS_URL')
    LEADERBOARD_CACHE_TTL = int(os.getenv('LEADERBOARD_CACHE_TTL', 0))  # 0 = no expiry
    
    # Scoring window settings
    LEADERBOARD_WINDOW_MODE = os.getenv('LEADERBOARD_WINDOW_MODE', 'rolling')  # rolling | contest
    LEADERBOARD_WINDOW_HOURS = float(os.getenv('LEADERBOARD_WINDOW_HOURS', 24))  # Look-back from "now"
    LEADERBOARD_SLACK_HOURS = float(os.getenv('LEADERBOARD_SLACK_HOURS', 24))    # Forward tolerance for clock skew
    
    # Read settings
    LEADERBOARD_PAGE_SIZE = int(os.getenv('LEADERBOARD_PAGE_SIZE', PaginationConstants.DEFAULT_PAGE_SIZE))
    LEADERBOARD_TOP_COUNT = int(os.getenv('LEADERBOARD_TOP_COUNT', PaginationConstants.DEFAULT_TOP_COUNT))
    SEARCH_LIMIT = int(os.getenv('SEARCH_LIMIT', SearchConstants.DEFAULT_LIMIT))
    
    WINDOW_MODES = ('rolling', 'contest')
    
    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if cls.LEADERBOARD_WINDOW_MODE not in cls.WINDOW_MODES:
            raise ValueError(f"LEADERBOARD_WINDOW_MODE must be one of {', '.join(cls.WINDOW_MODES)}")
        if cls.LEADERBOARD_WINDOW_HOURS < 0 or cls.LEADERBOARD_SLACK_HOURS < 0:
            raise ValueError("LEADERBOARD_WINDOW_HOURS and LEADERBOARD_SLACK_HOURS must not be negative")
        if cls.SEARCH_LIMIT < 1:
            raise ValueError("SEARCH_LIMIT must be a positive integer")
        if cls.LEADERBOARD_PAGE_SIZE < 1:
            raise ValueError("LEADERBOARD_PAGE_SIZE must be a positive integer")
