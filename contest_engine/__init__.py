"""
Contest leaderboard engine.

Aggregates time-windowed participant activity into weighted credit scores,
ranks participants with shared ties and serves the result through a
coalescing, asynchronously recomputed cache.
"""

__version__ = "1.0.0"
