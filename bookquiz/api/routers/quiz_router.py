"""
Quiz router for learner-facing quiz access and grading.

Endpoints for:
- Quiz listing and retrieval (answer keys withheld)
- Attempt submission and scoring
- Attempt history per learner
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from bookquiz.db import repository
from bookquiz.db.database import Database
from bookquiz.db.models import QuizRecord
from bookquiz.quiz import InvalidSubmissionError, QuizNotFoundError, SubmittedAnswer
from bookquiz.quiz.models import QuizAttempt
from bookquiz.quiz.service import QuizSubmission, get_attempt_history, submit_attempt

router = APIRouter()


def get_database(request: Request) -> Database:
    return request.app.state.database


# ========================================
# Request/Response Models
# ========================================


class OptionResponse(BaseModel):
    key: str
    text: str


class QuestionResponse(BaseModel):
    """A question as shown to learners: no answer key, no explanation."""

    id: str
    question: str
    options: List[OptionResponse]


class QuizSummaryResponse(BaseModel):
    id: int
    chapter_id: str
    title: str
    description: str
    passing_percentage: int
    question_count: int


class QuizResponse(BaseModel):
    id: int
    chapter_id: str
    title: str
    description: str
    passing_percentage: int
    questions: List[QuestionResponse]


class AnswerRequest(BaseModel):
    question_id: str
    selected_answer: str


class SubmitRequest(BaseModel):
    """Request model for submitting a quiz attempt."""

    user_id: str = Field(..., min_length=1, description="Learner identifier")
    quiz_id: int = Field(..., description="Quiz being answered")
    started_at: datetime = Field(..., description="When the learner opened the quiz")
    answers: List[AnswerRequest] = Field(default_factory=list)


class QuestionResultResponse(BaseModel):
    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str


class AttemptResponse(BaseModel):
    """Scored attempt returned for immediate display."""

    id: Optional[int]
    quiz_id: int
    attempt_number: int
    total_questions: int
    correct_answers: int
    score_percentage: int
    passed: bool
    results: List[QuestionResultResponse]
    time_taken_seconds: int
    started_at: datetime
    completed_at: datetime


class AttemptHistoryResponse(BaseModel):
    quiz_id: int
    user_id: str
    next_attempt_number: int
    best_score: Optional[int]
    has_passed: bool
    attempts: List[AttemptResponse]


def _summary(record: QuizRecord) -> QuizSummaryResponse:
    return QuizSummaryResponse(
        id=record.id,
        chapter_id=record.chapter_id,
        title=record.title,
        description=record.description,
        passing_percentage=record.passing_percentage,
        question_count=record.question_count,
    )


def _learner_view(record: QuizRecord) -> QuizResponse:
    quiz = record.to_quiz()
    return QuizResponse(
        id=record.id,
        chapter_id=quiz.chapter_id,
        title=quiz.title,
        description=quiz.description,
        passing_percentage=quiz.passing_percentage,
        questions=[QuestionResponse(**q.to_dict(include_answer=False)) for q in quiz.questions],
    )


def _attempt_response(attempt: QuizAttempt) -> AttemptResponse:
    return AttemptResponse(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        total_questions=attempt.total_questions,
        correct_answers=attempt.correct_answers,
        score_percentage=attempt.score_percentage,
        passed=attempt.passed,
        results=[QuestionResultResponse(**r.to_dict()) for r in attempt.results],
        time_taken_seconds=attempt.time_taken_seconds,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
    )


# ========================================
# Quiz Endpoints
# ========================================


@router.get("", response_model=List[QuizSummaryResponse], summary="List quizzes")
def list_quizzes(database: Database = Depends(get_database)) -> List[QuizSummaryResponse]:
    try:
        with database.session_scope() as session:
            return [_summary(r) for r in repository.list_quizzes(session)]
    except SQLAlchemyError:
        logger.exception("Failed to list quizzes")
        raise HTTPException(status_code=500, detail="Failed to list quizzes")


@router.get("/chapter/{chapter_id:path}", response_model=QuizResponse, summary="Get quiz by chapter")
def get_quiz_by_chapter(
    chapter_id: str,
    database: Database = Depends(get_database),
) -> QuizResponse:
    """Get the quiz attached to a chapter (answer keys withheld)."""
    try:
        with database.session_scope() as session:
            record = repository.get_quiz_by_chapter(session, chapter_id)
            if record is None:
                raise HTTPException(status_code=404, detail="Quiz not found")
            return _learner_view(record)
    except SQLAlchemyError:
        logger.exception(f"Failed to load quiz for chapter {chapter_id}")
        raise HTTPException(status_code=500, detail="Failed to load quiz")


@router.get("/{quiz_id}", response_model=QuizResponse, summary="Get quiz")
def get_quiz(quiz_id: int, database: Database = Depends(get_database)) -> QuizResponse:
    """Get a quiz by id (answer keys withheld)."""
    try:
        with database.session_scope() as session:
            record = repository.get_quiz(session, quiz_id)
            if record is None:
                raise HTTPException(status_code=404, detail="Quiz not found")
            return _learner_view(record)
    except SQLAlchemyError:
        logger.exception(f"Failed to load quiz {quiz_id}")
        raise HTTPException(status_code=500, detail="Failed to load quiz")


# ========================================
# Attempt Endpoints
# ========================================


@router.post("/submit", response_model=AttemptResponse, summary="Submit quiz attempt")
def submit_quiz(
    request: SubmitRequest,
    database: Database = Depends(get_database),
) -> AttemptResponse:
    """
    Grade a submission and record it as the learner's next attempt.

    Every question of the quiz must be answered exactly once.
    """
    submission = QuizSubmission(
        quiz_id=request.quiz_id,
        started_at=request.started_at,
        answers=tuple(SubmittedAnswer(a.question_id, a.selected_answer) for a in request.answers),
    )

    try:
        attempt = submit_attempt(
            database,
            request.user_id,
            submission,
            strict=get_settings().strict_submissions,
        )
    except QuizNotFoundError:
        raise HTTPException(status_code=404, detail="Quiz not found")
    except InvalidSubmissionError as exc:
        raise HTTPException(status_code=422, detail={"message": str(exc), **exc.to_dict()})
    except Exception:
        logger.exception(f"Failed to submit attempt for quiz {request.quiz_id}")
        raise HTTPException(status_code=500, detail="Failed to submit quiz")

    return _attempt_response(attempt)


@router.get(
    "/{quiz_id}/attempts",
    response_model=AttemptHistoryResponse,
    summary="Attempt history",
)
def attempt_history(
    quiz_id: int,
    user_id: str = Query(..., min_length=1),
    database: Database = Depends(get_database),
) -> AttemptHistoryResponse:
    try:
        history = get_attempt_history(database, user_id, quiz_id)
    except QuizNotFoundError:
        raise HTTPException(status_code=404, detail="Quiz not found")
    except SQLAlchemyError:
        logger.exception(f"Failed to load attempts for quiz {quiz_id}")
        raise HTTPException(status_code=500, detail="Failed to load attempts")

    return AttemptHistoryResponse(
        quiz_id=quiz_id,
        user_id=user_id,
        next_attempt_number=history.next_attempt_number,
        best_score=history.best_score,
        has_passed=history.has_passed,
        attempts=[_attempt_response(a) for a in history.attempts],
    )
