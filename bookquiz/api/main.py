"""
FastAPI application for book-quiz.

Provides REST API for:
- Quiz retrieval for the book reader
- Attempt submission and scoring
- Attempt history
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config import get_settings
from bookquiz import __version__
from bookquiz.api.routers import quiz_router
from bookquiz.db.database import Database, init_db


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        database: Storage handle to serve from. Created from settings at
            startup when omitted, and disposed at shutdown.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        logger.info("Starting book-quiz service...")
        owned = database is None
        app.state.database = database or Database.from_settings(settings)
        init_db(app.state.database)
        logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

        yield

        logger.info("Shutting down book-quiz service...")
        if owned:
            app.state.database.dispose()

    app = FastAPI(
        title="Book Quiz",
        description="""
    Quiz service for the book reader.

    ## Features

    - **Quizzes**: Chapter quizzes parsed from the book's markdown sources
    - **Grading**: Score submissions, record numbered attempts
    - **History**: Past attempts and the next attempt number per learner
    """,
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(quiz_router.router, prefix="/quizzes", tags=["Quizzes"])

    @app.get("/", tags=["Health"])
    def root() -> dict[str, str]:
        """Root endpoint returning service info."""
        return {
            "service": "book-quiz",
            "version": __version__,
            "status": "ok",
        }

    @app.get("/health", tags=["Health"])
    def health_check() -> dict[str, Any]:
        """Health check with an actual database round trip."""
        db_status, db_error = app.state.database.check_health()

        result: dict[str, Any] = {
            "status": "healthy" if db_status == "ok" else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {"database": db_status},
        }
        if db_error:
            result["errors"] = {"database": db_error}
        return result

    return app


app = create_app()
