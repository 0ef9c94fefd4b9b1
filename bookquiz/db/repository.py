"""
Quiz and attempt queries.

All functions take an open Session and leave transaction control to the
caller (see Database.session_scope).

Usage:
    with database.session_scope() as session:
        quiz_id = upsert_quiz(session, quiz)
"""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from bookquiz.quiz.models import Quiz, QuizAttempt

from .models import QuizAttemptCounter, QuizAttemptRecord, QuizRecord

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert(session: Session, table):
    """Dialect insert supporting ON CONFLICT DO UPDATE."""
    dialect = session.get_bind().dialect.name
    try:
        return _INSERTS[dialect](table)
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on dialect: {dialect}") from None


# =============================================================================
# QUIZZES
# =============================================================================


def upsert_quiz(session: Session, quiz: Quiz) -> int:
    """
    Insert a quiz or fully replace the one with the same chapter_id.

    The existing row keeps its id and created_at.

    Returns:
        The quiz id
    """
    values = {
        "chapter_id": quiz.chapter_id,
        "title": quiz.title,
        "description": quiz.description,
        "passing_percentage": quiz.passing_percentage,
        "questions": quiz.questions_document(),
    }
    stmt = _insert(session, QuizRecord).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["chapter_id"],
        set_={
            "title": stmt.excluded.title,
            "description": stmt.excluded.description,
            "passing_percentage": stmt.excluded.passing_percentage,
            "questions": stmt.excluded.questions,
            "updated_at": func.now(),
        },
    ).returning(QuizRecord.id)
    return session.execute(stmt).scalar_one()


def get_quiz(session: Session, quiz_id: int) -> QuizRecord | None:
    return session.get(QuizRecord, quiz_id)


def get_quiz_by_chapter(session: Session, chapter_id: str) -> QuizRecord | None:
    return session.execute(
        select(QuizRecord).where(QuizRecord.chapter_id == chapter_id)
    ).scalar_one_or_none()


def list_quizzes(session: Session) -> list[QuizRecord]:
    return list(session.execute(select(QuizRecord).order_by(QuizRecord.chapter_id)).scalars())


# =============================================================================
# ATTEMPTS
# =============================================================================


def allocate_attempt_number(session: Session, user_id: str, quiz_id: int) -> int:
    """
    Issue the next attempt number for a learner on a quiz.

    A single INSERT ... ON CONFLICT DO UPDATE increments the counter row, so
    concurrent submissions serialize on that row and never share a number.
    Numbers are not reused when attempts are deleted.
    """
    stmt = _insert(session, QuizAttemptCounter).values(
        user_id=user_id,
        quiz_id=quiz_id,
        last_attempt_number=1,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "quiz_id"],
        set_={"last_attempt_number": QuizAttemptCounter.last_attempt_number + 1},
    ).returning(QuizAttemptCounter.last_attempt_number)
    return session.execute(stmt).scalar_one()


def peek_next_attempt_number(session: Session, user_id: str, quiz_id: int) -> int:
    """Attempt number the learner's next submission will receive."""
    last = session.execute(
        select(QuizAttemptCounter.last_attempt_number).where(
            QuizAttemptCounter.user_id == user_id,
            QuizAttemptCounter.quiz_id == quiz_id,
        )
    ).scalar_one_or_none()
    return (last or 0) + 1


def add_attempt(session: Session, attempt: QuizAttempt) -> QuizAttemptRecord:
    record = QuizAttemptRecord.from_attempt(attempt)
    session.add(record)
    session.flush()
    return record


def list_attempts(session: Session, user_id: str, quiz_id: int) -> list[QuizAttemptRecord]:
    """Attempts of a learner on a quiz, newest first."""
    return list(
        session.execute(
            select(QuizAttemptRecord)
            .where(
                QuizAttemptRecord.user_id == user_id,
                QuizAttemptRecord.quiz_id == quiz_id,
            )
            .order_by(QuizAttemptRecord.attempt_number.desc())
        ).scalars()
    )
