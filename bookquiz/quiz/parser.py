"""
Quiz markdown parser.

Converts quiz documents from the book content tree into Quiz records.

Two authoring conventions are accepted:

Inline annotations (current):
    ### Question 1: Topic
    **Which option is correct?**
    A) first
    B) second
    **Answer: B)**
    **Explanation:** Because...

Trailing answer key (legacy):
    1. **B** - Because...

Problems with individual questions never fail the document: they are logged
as warnings and the question is kept.
"""
from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from loguru import logger

from .models import OPTION_KEYS, Quiz, QuizOption, QuizQuestion

DEFAULT_TITLE = "Quiz"
DEFAULT_DESCRIPTION = "Test your knowledge!"
DECORATION_CHARS = {"\ufe0f", "\u200d"}


class ParserState(str, Enum):
    """Scanner states for question extraction."""

    AWAITING_QUESTION = "awaiting_question"
    BUILDING_QUESTION = "building_question"


@dataclass
class _QuestionDraft:
    """Question being accumulated while scanning lines."""

    id: str
    question: str
    options: list[QuizOption] = field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.question) and bool(self.options)

    def freeze(self) -> QuizQuestion:
        return QuizQuestion(
            id=self.id,
            question=self.question,
            options=tuple(self.options),
            correct_answer=self.correct_answer,
            explanation=self.explanation,
        )


def extract_chapter_id(
    path: Path | str,
    prefix: str = "chapter-",
    suffix: str = "-quiz",
) -> str:
    """
    Derive the chapter id from a document path.

    Example:
        part-2/chapter-02-markdown/06-quiz-markdown.md -> chapter-02-markdown-quiz

    Falls back to the file name without its .md extension.
    """
    parts = [p for p in re.split(r"[/\\]", str(path)) if p]
    for part in parts:
        if part.startswith(prefix):
            return f"{part}{suffix}"
    name = parts[-1] if parts else ""
    return name[:-3] if name.endswith(".md") else name


def extract_navigation_id(path: Path | str, root: Path | str) -> str:
    """
    Derive a book navigation id: the path relative to the content root.

    Example:
        docs/part-2/chapter-02-markdown/06-quiz-markdown.md
            -> part-2/chapter-02-markdown/06-quiz-markdown
    """
    path = Path(path)
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        relative = path.as_posix()
    return relative[:-3] if relative.endswith(".md") else relative


def strip_decorations(text: str) -> str:
    """Remove emoji and other decorative symbols, collapsing whitespace."""
    cleaned = "".join(
        ch for ch in text
        if unicodedata.category(ch) != "So" and ch not in DECORATION_CHARS
    )
    return " ".join(cleaned.split())


def find_quiz_files(root: Path | str, marker: str = "quiz") -> list[Path]:
    """Recursively find markdown files whose name contains the marker."""
    root = Path(root)
    if not root.is_dir():
        return []
    return sorted(
        p for p in root.rglob("*.md")
        if p.is_file() and marker in p.name
    )


class QuizParser:
    """Line-oriented parser for quiz markdown documents."""

    TITLE_PREFIX = "# "
    QUESTIONS_SECTION_PATTERN = re.compile(r"^##\s+.*\bQuestions\b")
    QUESTION_HEADING_PATTERN = re.compile(r"^###\s+Question\s+(\d+):(.*)$")
    BOLD_OPTION_PATTERN = re.compile(r"^\*\*([A-Z])\)\*\*\s+(.+)$")
    OPTION_PATTERN = re.compile(r"^([A-Z])\)\s+(.+)$")
    INLINE_ANSWER_PATTERN = re.compile(r"\*\*Answer:\s+([A-D])\)")
    INLINE_EXPLANATION_PATTERN = re.compile(r"\*\*Explanation:\*\*\s+(.+)")
    LEGACY_ANSWER_PATTERN = re.compile(r"^(\d+)\.\s+\*\*([A-D])\*\*\s+-\s+(.+)$")
    DESCRIPTION_EXCLUDED_PREFIXES = ("**", "-", "#")

    def __init__(
        self,
        chapter_prefix: str = "chapter-",
        chapter_id_suffix: str = "-quiz",
        chapter_id_mode: str = "chapter",
        passing_percentage: int = 70,
        description_max_chars: int = 200,
    ):
        self.chapter_prefix = chapter_prefix
        self.chapter_id_suffix = chapter_id_suffix
        self.chapter_id_mode = chapter_id_mode
        self.passing_percentage = passing_percentage
        self.description_max_chars = description_max_chars

    @classmethod
    def from_settings(cls, settings) -> QuizParser:
        return cls(**settings.get_parser_config())

    # ========================================
    # Documents
    # ========================================

    def parse_file(self, path: Path | str, root: Path | str | None = None) -> Quiz | None:
        """
        Parse one quiz file.

        Unreadable files are logged and yield None so a batch can continue.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read quiz file {path}: {e}")
            return None

        return self.parse(text, str(path), chapter_id=self.chapter_id_for(path, root))

    def chapter_id_for(self, path: Path | str, root: Path | str | None = None) -> str:
        """
        Chapter id for a document path.

        Raises:
            ValueError: In path mode when no content root is given
        """
        if self.chapter_id_mode == "path":
            if root is None:
                raise ValueError("Navigation ids need the content root")
            return extract_navigation_id(path, root)
        return extract_chapter_id(path, self.chapter_prefix, self.chapter_id_suffix)

    def parse(
        self,
        text: str,
        source_path: str = "",
        chapter_id: str | None = None,
    ) -> Quiz | None:
        """
        Parse quiz markdown into a Quiz.

        In path mode the chapter id cannot be derived from source_path alone,
        so callers pass chapter_id (parse_file does).

        Returns:
            The parsed Quiz, or None when the document holds no usable question
        """
        lines = text.splitlines()
        source = source_path or "<text>"

        questions, legacy_answers = self._scan_questions(lines)
        questions = self._apply_legacy_answers(questions, legacy_answers)

        if not questions:
            logger.warning(f"No questions found in {source}")
            return None

        quiz = Quiz(
            chapter_id=chapter_id if chapter_id is not None else self.chapter_id_for(source_path),
            title=self.extract_title(lines),
            description=self.extract_description(lines),
            questions=tuple(questions),
            passing_percentage=self.passing_percentage,
        )

        invalid = quiz.invalid_questions
        if invalid:
            ids = ", ".join(q.id for q in invalid)
            logger.warning(
                f"{len(invalid)} questions missing answers or options in {source}: {ids}"
            )

        return quiz

    # ========================================
    # Header Extraction
    # ========================================

    def extract_title(self, lines: list[str]) -> str:
        for line in lines:
            if line.startswith(self.TITLE_PREFIX):
                return strip_decorations(line[len(self.TITLE_PREFIX):]) or DEFAULT_TITLE
        return DEFAULT_TITLE

    def extract_description(self, lines: list[str]) -> str:
        parts: list[str] = []
        in_description = False

        for line in lines:
            stripped = line.strip()
            if not in_description:
                in_description = line.startswith(self.TITLE_PREFIX)
                continue
            if self.QUESTIONS_SECTION_PATTERN.match(stripped):
                break
            if self.QUESTION_HEADING_PATTERN.match(stripped):
                break
            if stripped and not stripped.startswith(self.DESCRIPTION_EXCLUDED_PREFIXES):
                parts.append(stripped)

        description = " ".join(parts)[: self.description_max_chars].strip()
        return description or DEFAULT_DESCRIPTION

    # ========================================
    # Question Extraction
    # ========================================

    def _scan_questions(
        self, lines: list[str]
    ) -> tuple[list[QuizQuestion], dict[int, tuple[str, str]]]:
        """
        Scan lines into questions.

        Returns:
            Tuple of (finalized questions, legacy answer key by 1-based position)
        """
        state = ParserState.AWAITING_QUESTION
        draft: _QuestionDraft | None = None
        questions: list[QuizQuestion] = []
        legacy_answers: dict[int, tuple[str, str]] = {}
        heading_count = 0
        consumed_index = -1

        for index, raw_line in enumerate(lines):
            if index == consumed_index:
                continue
            line = raw_line.strip()

            heading = self.QUESTION_HEADING_PATTERN.match(line)
            if heading:
                if draft is not None:
                    self._finalize(draft, questions)
                heading_count += 1
                text, consumed = self._question_text(lines, index, heading.group(2).strip())
                if consumed:
                    consumed_index = index + 1
                draft = _QuestionDraft(id=f"q{heading_count}", question=text)
                state = ParserState.BUILDING_QUESTION
                continue

            legacy = self.LEGACY_ANSWER_PATTERN.match(line)
            if legacy:
                legacy_answers[int(legacy.group(1))] = (legacy.group(2), legacy.group(3).strip())
                continue

            if state is not ParserState.BUILDING_QUESTION or draft is None:
                continue

            option = self._match_option(line)
            if option is not None:
                draft.options.append(option)

            answer = self.INLINE_ANSWER_PATTERN.search(line)
            if answer:
                draft.correct_answer = answer.group(1)

            explanation = self.INLINE_EXPLANATION_PATTERN.search(line)
            if explanation:
                draft.explanation = explanation.group(1).strip()

        if draft is not None:
            self._finalize(draft, questions)

        return questions, legacy_answers

    def _question_text(self, lines: list[str], index: int, title: str) -> tuple[str, bool]:
        """
        Question text from the line after a heading.

        Returns:
            Tuple of (text, whether the following line was consumed)
        """
        if index + 1 >= len(lines):
            return title, False
        following = lines[index + 1].strip()
        if not following or self._is_structural(following):
            return title, False
        text = following.replace("**", "").strip()
        if not text:
            return title, False
        return text, True

    def _is_structural(self, line: str) -> bool:
        return bool(
            line.startswith("#")
            or self._match_option(line) is not None
            or self.INLINE_ANSWER_PATTERN.search(line)
            or self.INLINE_EXPLANATION_PATTERN.search(line)
            or self.LEGACY_ANSWER_PATTERN.match(line)
        )

    def _match_option(self, line: str) -> QuizOption | None:
        match = self.BOLD_OPTION_PATTERN.match(line) or self.OPTION_PATTERN.match(line)
        if not match or match.group(1) not in OPTION_KEYS:
            return None
        return QuizOption(key=match.group(1), text=match.group(2).strip())

    def _finalize(self, draft: _QuestionDraft, questions: list[QuizQuestion]) -> None:
        if draft.is_complete:
            questions.append(draft.freeze())
        else:
            logger.debug(f"Dropping question {draft.id}: no text or no options")

    @staticmethod
    def _apply_legacy_answers(
        questions: list[QuizQuestion],
        legacy_answers: dict[int, tuple[str, str]],
    ) -> list[QuizQuestion]:
        """Fill missing answers and explanations; inline values always win."""
        if not legacy_answers:
            return questions

        filled = []
        for position, question in enumerate(questions, start=1):
            entry = legacy_answers.get(position)
            if entry is not None:
                answer, explanation = entry
                question = replace(
                    question,
                    correct_answer=question.correct_answer or answer,
                    explanation=question.explanation or explanation,
                )
            filled.append(question)
        return filled


def parse_quiz(text: str, source_path: str = "", chapter_id: str | None = None) -> Quiz | None:
    """Parse quiz markdown with default parser settings."""
    return QuizParser().parse(text, source_path, chapter_id=chapter_id)
