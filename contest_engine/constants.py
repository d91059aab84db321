"""
Engine-wide constants for the contest leaderboard engine.

Magic numbers shared by the services live here so the defaults are
visible in one place.
"""

class PaginationConstants:
    """Constants for paginated leaderboard reads."""
    
    # Default page size for the full leaderboard listing
    DEFAULT_PAGE_SIZE = 100
    
    # Hard cap for a single page
    MAX_PAGE_SIZE = 500
    
    # Rows shown in the contest page summary
    DEFAULT_TOP_COUNT = 15

class SearchConstants:
    """Constants for participant typeahead search."""
    
    # Top-K results returned per query
    DEFAULT_LIMIT = 5
    
    # Escape character used for LIKE patterns
    LIKE_ESCAPE = '\\'

class CacheConstants:
    """Constants for leaderboard caching behavior."""
    
    # Key template for the mirrored snapshot in the cache store
    SNAPSHOT_KEY_TEMPLATE = "contest/{contest_id}/leaderboard"
    
    # Key template carrying the data-version marker
    VERSIONED_KEY_TEMPLATE = "contest/{contest_id}/{data_version}"

class ScoringConstants:
    """Constants for credit calculation."""
    
    # Decimal places credits are rounded to, so equal sums compare equal
    CREDIT_PRECISION = 6
