"""Review and practice services."""

from .practice import AttemptResult, mastery_for, record_attempt, start_session
from .review import ReviewOutcome, submit_review

__all__ = [
    "AttemptResult",
    "mastery_for",
    "record_attempt",
    "start_session",
    "ReviewOutcome",
    "submit_review",
]
