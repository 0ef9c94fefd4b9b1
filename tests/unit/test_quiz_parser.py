"""
Unit tests for QuizParser.

Covers both authoring conventions (inline answers, trailing answer key),
header extraction, and the tolerant handling of malformed questions.
Run: pytest tests/unit/test_quiz_parser.py -v
"""
import pytest

from bookquiz.quiz import QuizParser, extract_chapter_id, find_quiz_files, parse_quiz
from bookquiz.quiz.models import QuizOption
from bookquiz.quiz.parser import extract_navigation_id, strip_decorations


@pytest.fixture
def parser():
    return QuizParser()


class TestChapterId:
    """Chapter id derivation from document paths."""

    def test_chapter_segment_with_suffix(self):
        path = "docs/part-2-markdown-prompt-context/chapter-02-markdown/06-quiz-markdown.md"
        assert extract_chapter_id(path) == "chapter-02-markdown-quiz"

    def test_windows_separators(self):
        path = "docs\\part-3\\chapter-05-python-uv\\04-quiz-python-uv.md"
        assert extract_chapter_id(path) == "chapter-05-python-uv-quiz"

    def test_falls_back_to_file_name(self):
        assert extract_chapter_id("docs/extras/final-quiz.md") == "final-quiz"

    def test_custom_prefix_and_suffix(self):
        path = "book/unit-07-loops/quiz.md"
        assert extract_chapter_id(path, prefix="unit-", suffix="-check") == "unit-07-loops-check"

    def test_navigation_id_relative_to_root(self, tmp_path):
        path = tmp_path / "part-2" / "chapter-02-markdown" / "06-quiz-markdown.md"
        assert extract_navigation_id(path, tmp_path) == "part-2/chapter-02-markdown/06-quiz-markdown"

    def test_path_mode_uses_navigation_id(self, tmp_path):
        parser = QuizParser(chapter_id_mode="path")
        path = tmp_path / "part-2" / "chapter-02-markdown" / "06-quiz-markdown.md"
        assert parser.chapter_id_for(path, tmp_path) == "part-2/chapter-02-markdown/06-quiz-markdown"

    def test_path_mode_requires_content_root(self, inline_quiz_text):
        parser = QuizParser(chapter_id_mode="path")
        with pytest.raises(ValueError):
            parser.chapter_id_for("docs/chapter-02-markdown/06-quiz-markdown.md")
        with pytest.raises(ValueError):
            parser.parse(inline_quiz_text, "docs/chapter-02-markdown/06-quiz-markdown.md")

    def test_path_mode_parse_with_explicit_chapter_id(self, inline_quiz_text):
        parser = QuizParser(chapter_id_mode="path")
        quiz = parser.parse(inline_quiz_text, chapter_id="part-2/chapter-02-markdown/06-quiz-markdown")
        assert quiz.chapter_id == "part-2/chapter-02-markdown/06-quiz-markdown"


class TestHeaderExtraction:
    """Title and description extraction."""

    def test_title_strips_decorations(self, parser, inline_quiz_text):
        quiz = parser.parse(inline_quiz_text, "chapter-02-markdown/06-quiz.md")
        assert quiz.title == "Chapter Quiz"

    def test_strip_decorations_collapses_spaces(self):
        assert strip_decorations("  Loops 🔁 and ✨ Lists ") == "Loops and Lists"

    def test_description_skips_emphasis_and_list_lines(self, parser, inline_quiz_text):
        quiz = parser.parse(inline_quiz_text)
        assert quiz.description == (
            "Check what you learned about markdown. This quiz has three questions."
        )

    def test_description_truncated_to_limit(self, parser):
        text = "# Long\n\n" + "word " * 100 + "\n\n### Question 1: Q\n**Q?**\nA) a\n"
        quiz = parser.parse(text)
        assert len(quiz.description) <= 200
        assert quiz.description.startswith("word word")

    def test_description_stops_at_first_question_without_section_heading(self, parser):
        text = "# Quiz\n\nIntro text.\n\n### Question 1: Q\n**Q?**\nA) one\nB) two\n"
        quiz = parser.parse(text)
        assert quiz.description == "Intro text."

    def test_defaults_when_header_missing(self, parser):
        quiz = parser.parse("### Question 1: Only\n**Pick one**\nA) yes\n")
        assert quiz.title == "Quiz"
        assert quiz.description == "Test your knowledge!"


class TestQuestionExtraction:
    """Question scanning over the inline annotation convention."""

    def test_worked_example(self, parser):
        text = (
            "# Chapter Quiz\n"
            "\n"
            "### Question 1: Topic\n"
            "**What is the answer?**\n"
            "A) x\n"
            "B) y\n"
            "**Answer: B)**\n"
        )
        quiz = parser.parse(text)
        assert len(quiz.questions) == 1
        question = quiz.questions[0]
        assert question.id == "q1"
        assert question.question == "What is the answer?"
        assert question.correct_answer == "B"
        assert question.options == (QuizOption("A", "x"), QuizOption("B", "y"))

    def test_inline_document(self, parser, inline_quiz_text):
        quiz = parser.parse(inline_quiz_text)
        assert [q.id for q in quiz.questions] == ["q1", "q2", "q3"]
        assert [q.correct_answer for q in quiz.questions] == ["B", "B", "A"]
        assert quiz.questions[0].explanation == "A single hash marks a top-level heading."
        assert quiz.questions[2].explanation == ""
        assert quiz.passing_percentage == 70

    def test_bold_option_markers(self, parser, inline_quiz_text):
        quiz = parser.parse(inline_quiz_text)
        assert quiz.questions[1].option_keys == ("A", "B", "C", "D")
        assert quiz.questions[1].options[1].text == "`**text**`"

    def test_options_beyond_d_are_ignored(self, parser):
        text = "### Question 1: Q\n**Pick**\nA) a\nB) b\nE) e\n**Answer: A)**\n"
        quiz = parser.parse(text)
        assert quiz.questions[0].option_keys == ("A", "B")

    def test_heading_title_used_when_next_line_blank(self, parser):
        text = "### Question 1: What is a list?\n\nA) ordered\nB) unordered\n**Answer: A)**\n"
        quiz = parser.parse(text)
        assert quiz.questions[0].question == "What is a list?"

    def test_heading_title_used_when_next_line_is_option(self, parser):
        text = "### Question 1: Pick a letter\nA) first\nB) second\n**Answer: A)**\n"
        quiz = parser.parse(text)
        question = quiz.questions[0]
        assert question.question == "Pick a letter"
        assert question.option_keys == ("A", "B")

    def test_title_with_colons_kept_whole(self, parser):
        text = "### Question 1: Ratio: 1:2\n\nA) yes\n**Answer: A)**\n"
        quiz = parser.parse(text)
        assert quiz.questions[0].question == "Ratio: 1:2"

    def test_question_without_options_is_dropped(self, parser):
        text = (
            "### Question 1: Empty\n**No options here**\n\n"
            "### Question 2: Full\n**Has options**\nA) a\nB) b\n**Answer: B)**\n"
        )
        quiz = parser.parse(text)
        assert [q.id for q in quiz.questions] == ["q2"]

    def test_options_before_first_question_are_ignored(self, parser):
        text = "# Quiz\n\nA) stray\n\n### Question 1: Q\n**Q?**\nA) real\n**Answer: A)**\n"
        quiz = parser.parse(text)
        assert quiz.questions[0].options == (QuizOption("A", "real"),)


class TestLegacyAnswerKey:
    """Trailing 'N. **X** - explanation' answer keys."""

    def test_answers_filled_by_position(self, parser, legacy_quiz_text):
        quiz = parser.parse(legacy_quiz_text)
        assert [q.correct_answer for q in quiz.questions] == ["A", "B"]
        assert quiz.questions[1].explanation == "A literal with a decimal point is a float."

    def test_inline_values_take_precedence(self, parser):
        text = (
            "### Question 1: Q\n**Pick**\nA) a\nB) b\n"
            "**Answer: B)**\n**Explanation:** Inline wins.\n\n"
            "1. **A** - Legacy loses.\n"
        )
        quiz = parser.parse(text)
        assert quiz.questions[0].correct_answer == "B"
        assert quiz.questions[0].explanation == "Inline wins."

    def test_legacy_fills_only_missing_explanation(self, parser):
        text = "### Question 1: Q\n**Pick**\nA) a\nB) b\n**Answer: B)**\n\n1. **A** - From the key.\n"
        quiz = parser.parse(text)
        assert quiz.questions[0].correct_answer == "B"
        assert quiz.questions[0].explanation == "From the key."


class TestDocumentOutcomes:
    """Whole-document results and warnings."""

    def test_no_questions_returns_none(self, parser, log_messages):
        assert parser.parse("# Notes\n\nJust some prose.\n", "notes-quiz.md") is None
        assert any(
            r["level"].name == "WARNING" and "No questions found" in r["message"]
            for r in log_messages
        )

    def test_missing_answer_is_flagged_not_dropped(self, parser, log_messages):
        text = "### Question 1: Q\n**Pick**\nA) a\nB) b\n"
        quiz = parser.parse(text, "chapter-01-intro/quiz.md")
        assert len(quiz.questions) == 1
        assert quiz.invalid_questions == [quiz.questions[0]]
        assert any(
            r["level"].name == "WARNING" and "missing answers" in r["message"]
            for r in log_messages
        )

    def test_parse_is_idempotent(self, parser, inline_quiz_text):
        first = parser.parse(inline_quiz_text, "chapter-02-markdown/06-quiz.md")
        second = parser.parse(inline_quiz_text, "chapter-02-markdown/06-quiz.md")
        assert first == second

    def test_chapter_id_from_source_path(self, inline_quiz_text):
        quiz = parse_quiz(inline_quiz_text, "docs/part-2/chapter-02-markdown/06-quiz-markdown.md")
        assert quiz.chapter_id == "chapter-02-markdown-quiz"

    def test_questions_document_round_trip(self, parser, inline_quiz_text):
        quiz = parser.parse(inline_quiz_text)
        assert quiz.questions_from_document(quiz.questions_document()) == quiz.questions


class TestFiles:
    """File discovery and reading."""

    def test_find_quiz_files(self, content_tree):
        names = [p.name for p in find_quiz_files(content_tree)]
        assert names == ["06-quiz-markdown.md", "04-quiz-python-basics.md", "05-quiz-draft.md"]

    def test_find_quiz_files_missing_root(self, tmp_path):
        assert find_quiz_files(tmp_path / "missing") == []

    def test_parse_file(self, parser, content_tree):
        path = content_tree / "part-2-markdown" / "chapter-02-markdown" / "06-quiz-markdown.md"
        quiz = parser.parse_file(path, root=content_tree)
        assert quiz.chapter_id == "chapter-02-markdown-quiz"
        assert len(quiz.questions) == 3

    def test_unreadable_file_returns_none(self, parser, tmp_path, log_messages):
        path = tmp_path / "chapter-09-bad" / "quiz.md"
        path.parent.mkdir()
        path.write_bytes(b"# Quiz\n\xff\xfe not utf-8\n")
        assert parser.parse_file(path) is None
        assert any(r["level"].name == "ERROR" for r in log_messages)
