"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (temporary SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "smoke" in path:
            item.add_marker(pytest.mark.smoke)


INLINE_QUIZ = """\
# 🎯 Chapter Quiz ✨

Check what you learned about markdown.
This quiz has three questions.

**Instructions:** pick one answer per question.
- Take your time

## 📝 Questions

### Question 1: Headings
**Which symbol starts a top-level heading?**

A) x
B) y

<details>
<summary>Show answer</summary>

**Answer: B)**
**Explanation:** A single hash marks a top-level heading.
</details>

### Question 2: Emphasis
**How do you write bold text?**

**A)** `*text*`
**B)** `**text**`
**C)** `_text_`
**D)** `~text~`

**Answer: B)**
**Explanation:** Double asterisks produce bold text.

### Question 3: Lists
**Which line starts an unordered list item?**

A) `- item`
B) `1) item`
C) `> item`

**Answer: A)**
"""

LEGACY_QUIZ = """\
# Python Basics Quiz

A quick check on variables.

### Question 1: Variables
**Which keyword defines a function?**
A) def
B) func

### Question 2: Types
**What type is 3.0?**
A) int
B) float

## Answer Key

1. **A** - def starts a function definition.
2. **B** - A literal with a decimal point is a float.
"""


@pytest.fixture
def inline_quiz_text():
    return INLINE_QUIZ


@pytest.fixture
def legacy_quiz_text():
    return LEGACY_QUIZ


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def content_tree(tmp_path):
    """Book content tree with two quizzes and one non-quiz document."""
    root = tmp_path / "docs"
    chapter_02 = root / "part-2-markdown" / "chapter-02-markdown"
    chapter_05 = root / "part-3-python" / "chapter-05-python-basics"
    chapter_02.mkdir(parents=True)
    chapter_05.mkdir(parents=True)

    (chapter_02 / "01-intro.md").write_text("# Intro\n\nNot a quiz.\n", encoding="utf-8")
    (chapter_02 / "06-quiz-markdown.md").write_text(INLINE_QUIZ, encoding="utf-8")
    (chapter_05 / "04-quiz-python-basics.md").write_text(LEGACY_QUIZ, encoding="utf-8")
    (chapter_05 / "05-quiz-draft.md").write_text("# Draft quiz\n\nComing soon.\n", encoding="utf-8")
    return root


@pytest.fixture
def database(tmp_path):
    """Initialized SQLite database in a temporary directory."""
    from bookquiz.db.database import Database, init_db

    db = Database(f"sqlite:///{tmp_path / 'quiz.db'}")
    init_db(db)
    yield db
    db.dispose()
