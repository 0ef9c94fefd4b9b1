"""
Quiz storage models.

Implements:
- QuizRecord: Parsed quiz, upserted by chapter_id
- QuizAttemptRecord: Append-only graded attempt history
- QuizAttemptCounter: Last attempt number issued per learner and quiz

The questions column holds the parser output:

    {
        "questions": [
            {
                "id": "q1",
                "question": "Which heading level is a page title?",
                "options": [{"key": "A", "text": "#"}, {"key": "B", "text": "##"}],
                "correct_answer": "A",
                "explanation": "A single # marks the top-level heading."
            }
        ]
    }
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookquiz.quiz.models import QuestionResult, Quiz, QuizAttempt

from .base import Base, JSONDocument


class QuizRecord(Base):
    """Stored quiz keyed by its chapter id."""

    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chapter_id: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    passing_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    questions: Mapped[dict] = mapped_column(JSONDocument, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    attempts: Mapped[list["QuizAttemptRecord"]] = relationship(
        "QuizAttemptRecord",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<QuizRecord(chapter_id={self.chapter_id}, title={self.title})>"

    @property
    def question_count(self) -> int:
        return len((self.questions or {}).get("questions", []))

    def to_quiz(self) -> Quiz:
        return Quiz(
            chapter_id=self.chapter_id,
            title=self.title,
            description=self.description,
            questions=Quiz.questions_from_document(self.questions),
            passing_percentage=self.passing_percentage,
        )


class QuizAttemptRecord(Base):
    """One graded submission. Never updated after insert."""

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    score_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_taken_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    results: Mapped[list] = mapped_column(JSONDocument, nullable=False)

    quiz: Mapped[QuizRecord] = relationship("QuizRecord", back_populates="attempts")

    def __repr__(self) -> str:
        return (
            f"<QuizAttemptRecord(user_id={self.user_id}, quiz_id={self.quiz_id}, "
            f"attempt={self.attempt_number}, score={self.score_percentage})>"
        )

    @classmethod
    def from_attempt(cls, attempt: QuizAttempt) -> QuizAttemptRecord:
        return cls(
            user_id=attempt.user_id,
            quiz_id=attempt.quiz_id,
            attempt_number=attempt.attempt_number,
            started_at=attempt.started_at,
            completed_at=attempt.completed_at,
            total_questions=attempt.total_questions,
            correct_answers=attempt.correct_answers,
            score_percentage=attempt.score_percentage,
            passed=attempt.passed,
            time_taken_seconds=attempt.time_taken_seconds,
            results=[r.to_dict() for r in attempt.results],
        )

    def to_attempt(self) -> QuizAttempt:
        return QuizAttempt(
            id=self.id,
            user_id=self.user_id,
            quiz_id=self.quiz_id,
            attempt_number=self.attempt_number,
            started_at=self.started_at,
            completed_at=self.completed_at,
            total_questions=self.total_questions,
            correct_answers=self.correct_answers,
            score_percentage=self.score_percentage,
            passed=self.passed,
            time_taken_seconds=self.time_taken_seconds,
            results=[QuestionResult.from_dict(r) for r in self.results or []],
        )


class QuizAttemptCounter(Base):
    """Highest attempt number issued for a learner on a quiz."""

    __tablename__ = "quiz_attempt_counters"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), primary_key=True
    )
    last_attempt_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
