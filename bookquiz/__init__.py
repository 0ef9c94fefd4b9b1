"""book-quiz: markdown quiz import and grading for the book reader."""

__version__ = "0.1.0"
