"""API routers for book-quiz."""

from bookquiz.api.routers import quiz_router

__all__ = [
    "quiz_router",
]
