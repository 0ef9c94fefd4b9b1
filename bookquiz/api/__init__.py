"""HTTP API for book-quiz."""
