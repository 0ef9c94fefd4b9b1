"""Quiz grading errors surfaced to callers."""
from __future__ import annotations


class QuizError(Exception):
    """Base class for quiz errors."""


class QuizNotFoundError(QuizError):
    """Raised when a quiz id does not exist in storage."""

    def __init__(self, quiz_id: int | str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz not found: {quiz_id}")


class InvalidSubmissionError(QuizError):
    """
    Raised when a submission does not answer exactly the quiz's questions.

    Attributes:
        missing: Quiz question ids without a submitted answer
        unknown: Submitted ids that are not questions of the quiz
        duplicates: Question ids answered more than once
    """

    def __init__(
        self,
        message: str = "Invalid submission",
        missing: list[str] | None = None,
        unknown: list[str] | None = None,
        duplicates: list[str] | None = None,
    ):
        self.missing = missing or []
        self.unknown = unknown or []
        self.duplicates = duplicates or []
        details = []
        if self.missing:
            details.append(f"missing answers: {', '.join(self.missing)}")
        if self.unknown:
            details.append(f"unknown questions: {', '.join(self.unknown)}")
        if self.duplicates:
            details.append(f"duplicate answers: {', '.join(self.duplicates)}")
        if details:
            message = f"{message} ({'; '.join(details)})"
        super().__init__(message)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "missing": self.missing,
            "unknown": self.unknown,
            "duplicates": self.duplicates,
        }
