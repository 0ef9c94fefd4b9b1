"""
Typer CLI for book-quiz.

Commands:
    bookquiz import     - Parse quiz markdown under CONTENT_DIR and upsert it
    bookquiz quizzes    - Show stored quizzes
    bookquiz db init    - Initialize database tables
    bookquiz info       - Show configuration

Usage:
    bookquiz --help
    bookquiz import
"""

from __future__ import annotations

import sys

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from bookquiz import __version__

app = typer.Typer(
    help="book-quiz CLI: markdown quizzes -> database",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback() -> None:
    """Configure logging for every command."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def _open_database():
    from bookquiz.db.database import Database, init_db

    database = Database.from_settings()
    init_db(database)
    return database


# ========================================
# IMPORT COMMANDS
# ========================================


@app.command("import")
def import_command() -> None:
    """
    Import every quiz document under the configured content directory.

    Documents without questions or that cannot be read are skipped.
    Exits with code 1 if the database cannot be written.
    """
    from bookquiz.quiz.parser import QuizParser
    from bookquiz.quiz.service import import_quizzes

    settings = get_settings()
    parser = QuizParser.from_settings(settings)

    try:
        database = _open_database()
        try:
            result = import_quizzes(
                database,
                settings.content_dir,
                parser=parser,
                marker=settings.quiz_file_marker,
            )
        finally:
            database.dispose()
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        raise typer.Exit(code=1)

    rprint()
    rprint("[green]Import complete:[/green]")
    rprint(f"  Files found: {result.files_found}")
    rprint(f"  Imported: {result.total_imported}")
    rprint(f"  Questions: {result.questions_imported}")

    if result.invalid_questions:
        rprint(f"  [yellow]Questions missing answers: {result.invalid_questions}[/yellow]")
    if result.skipped:
        rprint(f"  [yellow]Skipped: {len(result.skipped)}[/yellow]")
        for path in result.skipped[:5]:
            rprint(f"    - {path}")


@app.command("quizzes")
def list_quizzes_command() -> None:
    """Show stored quizzes with their question counts."""
    from bookquiz.db import repository

    try:
        database = _open_database()
        try:
            with database.session_scope() as session:
                rows = [
                    (r.chapter_id, r.title, r.question_count, r.passing_percentage)
                    for r in repository.list_quizzes(session)
                ]
        finally:
            database.dispose()
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        raise typer.Exit(code=1)

    if not rows:
        rprint("[yellow]No quizzes stored. Run 'bookquiz import' first.[/yellow]")
        return

    table = Table(title=f"Quizzes ({len(rows)})")
    table.add_column("Chapter", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Questions", justify="right")
    table.add_column("Pass %", justify="right", style="dim")

    for chapter_id, title, count, passing in rows:
        table.add_row(chapter_id, title, str(count), str(passing))

    console.print(table)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    try:
        _open_database().dispose()
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        raise typer.Exit(code=1)
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# INFO COMMANDS
# ========================================


@app.command("info")
def show_info() -> None:
    """Show configuration."""
    from bookquiz.db.database import display_url

    settings = get_settings()

    table = Table(title="book-quiz Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Database", display_url(settings.database_url))
    table.add_row("Content Dir", settings.content_dir)
    table.add_row("Quiz File Marker", settings.quiz_file_marker)
    table.add_row("Chapter Id Mode", settings.chapter_id_mode)
    table.add_row("Passing %", str(settings.default_passing_percentage))
    table.add_row("Strict Submissions", str(settings.strict_submissions))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Version", __version__)

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
