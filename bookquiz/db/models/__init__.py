# SQLAlchemy models
from .base import Base
from .quiz import (
    QuizAttemptCounter,
    QuizAttemptRecord,
    QuizRecord,
)

__all__ = [
    "Base",
    "QuizRecord",
    "QuizAttemptRecord",
    "QuizAttemptCounter",
]
