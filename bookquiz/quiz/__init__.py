"""
Quiz module: markdown quiz parsing and grading.

This module provides:
- QuizParser: Markdown quiz documents -> Quiz records
- grade_submission: Score a learner's answers against a quiz

Persistence-aware operations (import, submit) live in quiz.service.
"""

from .exceptions import InvalidSubmissionError, QuizError, QuizNotFoundError
from .grader import grade_submission, score_percentage, validate_submission
from .models import (
    GradeReport,
    QuestionResult,
    Quiz,
    QuizAttempt,
    QuizOption,
    QuizQuestion,
    SubmittedAnswer,
)
from .parser import QuizParser, extract_chapter_id, find_quiz_files, parse_quiz

__all__ = [
    # Parsing
    "QuizParser",
    "parse_quiz",
    "extract_chapter_id",
    "find_quiz_files",
    # Grading
    "grade_submission",
    "score_percentage",
    "validate_submission",
    # Models
    "Quiz",
    "QuizQuestion",
    "QuizOption",
    "QuizAttempt",
    "QuestionResult",
    "SubmittedAnswer",
    "GradeReport",
    # Errors
    "QuizError",
    "QuizNotFoundError",
    "InvalidSubmissionError",
]
