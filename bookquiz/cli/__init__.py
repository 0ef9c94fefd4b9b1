"""Command line interface for book-quiz."""
