"""
Kernel Data Models

Core SQLAlchemy models: identity, lecture content, learner progress,
social graph, ranks and AI token usage.
"""

from lectern.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from lectern.kernel.models.user import User, RefreshToken, DEFAULT_ELO
from lectern.kernel.models.lecture import Lecture, Subtopic, QuizQuestion
from lectern.kernel.models.progress import (
    UserMastery,
    QuizAttempt,
    QuizProgress,
    QuizReset,
    LectureCompletion,
    EloEvent,
)
from lectern.kernel.models.social import Follow
from lectern.kernel.models.rank import Rank
from lectern.kernel.models.token_usage import TokenUsage

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # User
    "User",
    "RefreshToken",
    "DEFAULT_ELO",
    # Content
    "Lecture",
    "Subtopic",
    "QuizQuestion",
    # Progress
    "UserMastery",
    "QuizAttempt",
    "QuizProgress",
    "QuizReset",
    "LectureCompletion",
    "EloEvent",
    # Social
    "Follow",
    # Ranks
    "Rank",
    # Usage
    "TokenUsage",
]
