"""Relational storage for quizzes and attempts."""

from .database import Database, init_db

__all__ = [
    "Database",
    "init_db",
]
