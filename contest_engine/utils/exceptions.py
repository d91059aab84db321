"""
Custom exceptions for the leaderboard engine with user-friendly error messages.
"""

from typing import Iterable, List


class LeaderboardException(Exception):
    """Base exception for leaderboard-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class ConfigurationError(LeaderboardException):
    """Raised when a contest configuration fails validation."""
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            f"Invalid contest configuration: {'; '.join(self.errors)}",
            "Contest settings are invalid: " + "; ".join(self.errors)
        )

class ContestNotFoundError(LeaderboardException):
    """Raised when a contest does not exist."""
    def __init__(self, contest_id: int):
        self.contest_id = contest_id
        super().__init__(
            f"Contest {contest_id} not found",
            "This contest does not exist."
        )

class PartialDataUnavailable(LeaderboardException):
    """Raised when one or more activity sources could not be read for a participant."""
    def __init__(self, participant_id: int, sources: Iterable[str]):
        self.participant_id = participant_id
        self.sources = tuple(sources)
        super().__init__(
            f"Activity for participant {participant_id} unavailable from: {', '.join(self.sources)}",
            "Leaderboard temporarily unavailable."
        )

class RecomputeFailedError(LeaderboardException):
    """Raised when a leaderboard recompute could not be published."""
    def __init__(self, contest_id: int, unavailable_participants: Iterable[int] = ()):
        self.contest_id = contest_id
        self.unavailable_participants = tuple(unavailable_participants)
        details = ""
        if self.unavailable_participants:
            details = f" (unavailable participants: {', '.join(map(str, self.unavailable_participants))})"
        super().__init__(
            f"Leaderboard recompute failed for contest {contest_id}{details}",
            "Leaderboard temporarily unavailable."
        )

class DatabaseError(LeaderboardException):
    """Raised when database operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Database error occurred. Please try again later."
        )
