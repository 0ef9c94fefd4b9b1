"""
Quiz grading.

Pure scoring of a submission against a quiz's answer key. Attempt numbering
and persistence live in the service layer.

Score rounding is half-up on the exact ratio: 1 of 8 correct is 12.5% and
scores 13, 2 of 3 correct scores 67.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone

from loguru import logger

from .exceptions import InvalidSubmissionError
from .models import GradeReport, QuestionResult, Quiz, QuizQuestion, SubmittedAnswer


def validate_submission(
    questions: Iterable[QuizQuestion],
    answers: Iterable[SubmittedAnswer],
    strict: bool = True,
) -> dict[str, str]:
    """
    Check that a submission answers every question exactly once.

    Args:
        questions: Questions of the quiz
        answers: Submitted answers
        strict: Reject answers to question ids the quiz does not have

    Returns:
        Mapping of question id to selected answer key

    Raises:
        InvalidSubmissionError: On missing, duplicate, or (strict) unknown ids
    """
    question_ids = [q.id for q in questions]
    if not question_ids:
        raise InvalidSubmissionError("Quiz has no questions to grade")

    answers = list(answers)
    counts = Counter(a.question_id for a in answers)
    known = set(question_ids)

    missing = [qid for qid in question_ids if qid not in counts]
    duplicates = sorted(qid for qid, n in counts.items() if n > 1)
    unknown = sorted(qid for qid in counts if qid not in known)

    if unknown and not strict:
        logger.warning(f"Ignoring answers to unknown questions: {', '.join(unknown)}")
        duplicates = [qid for qid in duplicates if qid in known]
        unknown = []

    if missing or duplicates or unknown:
        raise InvalidSubmissionError(
            missing=missing,
            unknown=unknown,
            duplicates=duplicates,
        )

    return {a.question_id: a.selected_answer for a in answers if a.question_id in known}


def score_percentage(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half-up."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def is_passed(score: int, passing_percentage: int) -> bool:
    return score >= passing_percentage


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def time_taken_seconds(started_at: datetime, completed_at: datetime) -> int:
    """Whole seconds between start and completion, never negative."""
    elapsed = (as_utc(completed_at) - as_utc(started_at)).total_seconds()
    return max(0, int(elapsed))


def grade_question(question: QuizQuestion, selected_answer: str) -> QuestionResult:
    return QuestionResult(
        question_id=question.id,
        selected_answer=selected_answer,
        correct_answer=question.correct_answer,
        is_correct=bool(question.correct_answer) and selected_answer == question.correct_answer,
        explanation=question.explanation,
    )


def grade_submission(
    quiz: Quiz,
    answers: Iterable[SubmittedAnswer],
    started_at: datetime,
    completed_at: datetime,
    strict: bool = True,
) -> GradeReport:
    """
    Grade a submission against a quiz.

    Raises:
        InvalidSubmissionError: If the submission does not answer every question
    """
    selected = validate_submission(quiz.questions, answers, strict=strict)

    results = tuple(grade_question(q, selected[q.id]) for q in quiz.questions)
    correct = sum(1 for r in results if r.is_correct)
    total = len(results)
    score = score_percentage(correct, total)

    return GradeReport(
        results=results,
        total_questions=total,
        correct_answers=correct,
        score_percentage=score,
        passed=is_passed(score, quiz.passing_percentage),
        time_taken_seconds=time_taken_seconds(started_at, completed_at),
    )
