"""Database model exports."""

from .result import TypingResult
from .stats import SubjectStats
from .typing_test import TypingTest
from .user import User

__all__ = [
    "SubjectStats",
    "TypingResult",
    "TypingTest",
    "User",
]
