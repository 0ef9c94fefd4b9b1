"""
Quiz service: batch import and attempt submission.

Both operations take an explicit Database handle and open their own
transaction scopes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from bookquiz.db import repository
from bookquiz.db.database import Database

from .exceptions import QuizNotFoundError
from .grader import as_utc, grade_submission
from .models import QuizAttempt, SubmittedAnswer
from .parser import QuizParser, find_quiz_files


@dataclass
class ImportResult:
    """Result of a batch quiz import."""

    files_found: int = 0
    imported: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    questions_imported: int = 0
    invalid_questions: int = 0

    @property
    def total_imported(self) -> int:
        return len(self.imported)


@dataclass(frozen=True)
class QuizSubmission:
    """A learner's answers to one quiz."""

    quiz_id: int
    started_at: datetime
    answers: tuple[SubmittedAnswer, ...]


@dataclass
class AttemptHistory:
    attempts: list[QuizAttempt]
    next_attempt_number: int

    @property
    def best_score(self) -> int | None:
        return max((a.score_percentage for a in self.attempts), default=None)

    @property
    def has_passed(self) -> bool:
        return any(a.passed for a in self.attempts)


def import_quizzes(
    database: Database,
    content_dir: Path | str,
    parser: QuizParser | None = None,
    marker: str = "quiz",
) -> ImportResult:
    """
    Parse every quiz document under content_dir and upsert it.

    Unreadable documents, documents without questions and documents whose
    chapter id was already claimed by an earlier file are skipped.
    Storage errors propagate and abort the import.
    """
    parser = parser or QuizParser()
    content_dir = Path(content_dir)
    files = find_quiz_files(content_dir, marker)
    result = ImportResult(files_found=len(files))
    logger.info(f"Found {len(files)} quiz files in {content_dir}")

    quizzes = []
    sources: dict[str, Path] = {}
    for path in files:
        quiz = parser.parse_file(path, root=content_dir)
        if quiz is None:
            result.skipped.append(str(path))
            continue
        if quiz.chapter_id in sources:
            logger.warning(
                f"Skipping {path}: chapter id {quiz.chapter_id} already taken by {sources[quiz.chapter_id]}"
            )
            result.skipped.append(str(path))
            continue
        sources[quiz.chapter_id] = path
        logger.debug(f"Parsed {quiz.title} ({len(quiz.questions)} questions) from {path}")
        quizzes.append(quiz)

    with database.session_scope() as session:
        for quiz in quizzes:
            repository.upsert_quiz(session, quiz)
            result.imported.append(quiz.chapter_id)
            result.questions_imported += len(quiz.questions)
            result.invalid_questions += len(quiz.invalid_questions)
            logger.info(f"Upserted quiz {quiz.chapter_id}: {quiz.title} ({len(quiz.questions)} questions)")

    return result


def submit_attempt(
    database: Database,
    user_id: str,
    submission: QuizSubmission,
    strict: bool = True,
    now: datetime | None = None,
) -> QuizAttempt:
    """
    Grade a submission and record it as the learner's next attempt.

    Raises:
        QuizNotFoundError: If the quiz does not exist
        InvalidSubmissionError: If the answers do not match the quiz's questions
    """
    completed_at = as_utc(now or datetime.now(timezone.utc))

    with database.session_scope() as session:
        record = repository.get_quiz(session, submission.quiz_id)
        if record is None:
            raise QuizNotFoundError(submission.quiz_id)

        report = grade_submission(
            record.to_quiz(),
            submission.answers,
            started_at=submission.started_at,
            completed_at=completed_at,
            strict=strict,
        )

        attempt = QuizAttempt(
            user_id=user_id,
            quiz_id=record.id,
            attempt_number=repository.allocate_attempt_number(session, user_id, record.id),
            started_at=as_utc(submission.started_at),
            completed_at=completed_at,
            total_questions=report.total_questions,
            correct_answers=report.correct_answers,
            score_percentage=report.score_percentage,
            passed=report.passed,
            time_taken_seconds=report.time_taken_seconds,
            results=list(report.results),
        )
        attempt.id = repository.add_attempt(session, attempt).id

    logger.info(
        f"User {user_id} attempt #{attempt.attempt_number} on quiz {attempt.quiz_id}: "
        f"{attempt.score_percentage}% ({'passed' if attempt.passed else 'failed'})"
    )
    return attempt


def get_attempt_history(database: Database, user_id: str, quiz_id: int) -> AttemptHistory:
    """
    Prior attempts, newest first, and the next attempt number.

    Raises:
        QuizNotFoundError: If the quiz does not exist
    """
    with database.session_scope() as session:
        if repository.get_quiz(session, quiz_id) is None:
            raise QuizNotFoundError(quiz_id)
        return AttemptHistory(
            attempts=[r.to_attempt() for r in repository.list_attempts(session, user_id, quiz_id)],
            next_attempt_number=repository.peek_next_attempt_number(session, user_id, quiz_id),
        )
