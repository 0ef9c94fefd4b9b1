"""
Quiz value types.

Quiz and QuizQuestion are produced by the parser and never mutated afterwards.
QuizAttempt is the graded, persisted outcome of one learner submission.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

OPTION_KEYS = ("A", "B", "C", "D")


@dataclass(frozen=True)
class QuizOption:
    """One answer choice of a multiple choice question."""

    key: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "text": self.text}


@dataclass(frozen=True)
class QuizQuestion:
    """A single multiple choice question with its answer key."""

    id: str
    question: str
    options: tuple[QuizOption, ...] = ()
    correct_answer: str = ""
    explanation: str = ""

    @property
    def option_keys(self) -> tuple[str, ...]:
        return tuple(option.key for option in self.options)

    @property
    def is_valid(self) -> bool:
        """A question is gradeable when its answer key names one of its options."""
        return bool(self.options) and self.correct_answer in self.option_keys

    def to_dict(self, include_answer: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "question": self.question,
            "options": [option.to_dict() for option in self.options],
        }
        if include_answer:
            data["correct_answer"] = self.correct_answer
            data["explanation"] = self.explanation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizQuestion:
        return cls(
            id=str(data["id"]),
            question=data.get("question", ""),
            options=tuple(
                QuizOption(key=opt["key"], text=opt.get("text", ""))
                for opt in data.get("options", [])
            ),
            correct_answer=data.get("correct_answer", "") or "",
            explanation=data.get("explanation", "") or "",
        )


@dataclass(frozen=True)
class Quiz:
    """Structured representation of one quiz document."""

    chapter_id: str
    title: str
    description: str
    questions: tuple[QuizQuestion, ...]
    passing_percentage: int = 70

    @property
    def question_ids(self) -> tuple[str, ...]:
        return tuple(q.id for q in self.questions)

    @property
    def invalid_questions(self) -> list[QuizQuestion]:
        return [q for q in self.questions if not q.is_valid]

    def questions_document(self) -> dict[str, Any]:
        """JSON document stored in the quizzes.questions column."""
        return {"questions": [q.to_dict() for q in self.questions]}

    @staticmethod
    def questions_from_document(document: dict[str, Any] | None) -> tuple[QuizQuestion, ...]:
        if not document:
            return ()
        return tuple(QuizQuestion.from_dict(q) for q in document.get("questions", []))


@dataclass(frozen=True)
class SubmittedAnswer:
    """A learner's selected option for one question."""

    question_id: str
    selected_answer: str


@dataclass(frozen=True)
class QuestionResult:
    """Grading outcome for one question."""

    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "selected_answer": self.selected_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionResult:
        return cls(
            question_id=data["question_id"],
            selected_answer=data["selected_answer"],
            correct_answer=data["correct_answer"],
            is_correct=bool(data["is_correct"]),
            explanation=data.get("explanation", "") or "",
        )


@dataclass(frozen=True)
class GradeReport:
    """Score of a submission before it is numbered and persisted."""

    results: tuple[QuestionResult, ...]
    total_questions: int
    correct_answers: int
    score_percentage: int
    passed: bool
    time_taken_seconds: int


@dataclass
class QuizAttempt:
    """One learner's completed, graded submission for one quiz."""

    user_id: str
    quiz_id: int
    attempt_number: int
    started_at: datetime
    completed_at: datetime
    total_questions: int
    correct_answers: int
    score_percentage: int
    passed: bool
    time_taken_seconds: int
    results: list[QuestionResult] = field(default_factory=list)
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quiz_id": self.quiz_id,
            "attempt_number": self.attempt_number,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "score_percentage": self.score_percentage,
            "passed": self.passed,
            "time_taken_seconds": self.time_taken_seconds,
            "results": [r.to_dict() for r in self.results],
        }
