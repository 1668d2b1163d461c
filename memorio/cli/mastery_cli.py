"""
Memorio mastery CLI.

Terminal front end over the MasteryCoordinator.

Commands:
- memorio init-db     - Create the mastery tables
- memorio record      - Record an exercise attempt
- memorio stats       - Aggregate mastery statistics
- memorio due         - Skills due for review
- memorio practice    - Skills needing practice
- memorio mastered    - Mastered skills
- memorio recommend   - Recommended difficulty for a skill type
- memorio history     - Recent attempts from the ledger
- memorio dashboard   - Stats and all skill lists together
- memorio export      - GDPR export as JSON
"""
from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from memorio.core.errors import MasteryError
from memorio.db.database import check_database_health, configure_database, init_db
from memorio.db.models import AttemptLedgerEntry, MasteryRecord
from memorio.learning import MasteryCoordinator, export_user_data
from memorio.logging_setup import configure_logging

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="memorio",
    help="Memorio: adaptive mastery tracking",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main_callback(
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        envvar="DATABASE_URL",
        help="Database URL (default: from config)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (default: from config)",
    ),
) -> None:
    """Configure logging and the database before running a command."""
    configure_logging(level=log_level.upper() if log_level else None)
    configure_database(database_url)


def _coordinator() -> MasteryCoordinator:
    return MasteryCoordinator()


def _fail(error: MasteryError) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(code=1)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn domain and database errors into a message and exit code 1."""
    try:
        yield
    except MasteryError as e:
        _fail(e)
    except SQLAlchemyError as e:
        logger.debug(f"Database error: {e}")
        reason = getattr(e, "orig", None) or e
        console.print(f"[bold red]Database error:[/bold red] {escape(str(reason))}")
        console.print("Run 'memorio init-db' to create the mastery tables.")
        raise typer.Exit(code=1) from e


# =============================================================================
# Display Helpers
# =============================================================================


def _mastery_color(probability: float) -> str:
    if probability >= 0.95:
        return "green"
    if probability >= 0.7:
        return "cyan"
    if probability >= 0.4:
        return "yellow"
    return "red"


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _skill_table(title: str, records: list[MasteryRecord]) -> Table:
    table = Table(title=title)
    table.add_column("Skill")
    table.add_column("Concept")
    table.add_column("P(known)", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Next review")

    for record in records:
        color = _mastery_color(record.probability_known)
        table.add_row(
            record.skill_type,
            record.concept_id or "[dim](global)[/dim]",
            f"[{color}]{record.probability_known:.3f}[/{color}]",
            f"{record.correct_attempts}/{record.total_attempts}",
            f"{record.accuracy_rate * 100:.0f}%",
            f"{record.ease_factor:.2f}",
            f"{record.review_interval_days:.1f}d",
            _format_time(record.next_review_at),
        )
    return table


def _print_skills(title: str, records: list[MasteryRecord]) -> None:
    if not records:
        console.print(f"[dim]{title}: none[/dim]")
        return
    console.print(_skill_table(title, records))


def _history_table(entries: list[AttemptLedgerEntry]) -> Table:
    table = Table(title="Attempt History")
    table.add_column("When")
    table.add_column("Skill")
    table.add_column("Difficulty", justify="right")
    table.add_column("Result")
    table.add_column("Quality", justify="right")
    table.add_column("P(known)", justify="right")

    for entry in entries:
        result = "[green]correct[/green]" if entry.was_correct else "[red]incorrect[/red]"
        table.add_row(
            _format_time(entry.created_at),
            entry.skill_type,
            str(entry.difficulty_level),
            result,
            str(entry.quality),
            f"{entry.probability_known_before:.3f} -> {entry.probability_known_after:.3f}",
        )
    return table


# =============================================================================
# Commands
# =============================================================================


@app.command("init-db")
def init_db_command() -> None:
    """Create the mastery tables if they do not exist."""
    status, error = check_database_health()
    if status != "ok":
        console.print(f"[bold red]Database unavailable:[/bold red] {error}")
        raise typer.Exit(code=1)
    init_db()
    console.print("[green]Mastery tables ready.[/green]")


@app.command()
def record(
    user_id: str = typer.Argument(..., help="Learner id"),
    skill_type: str = typer.Argument(..., help="Skill type, e.g. NAMES_FACES"),
    correct: bool = typer.Option(True, "--correct/--incorrect", help="Attempt outcome"),
    difficulty: int = typer.Option(..., "--difficulty", "-d", help="Exercise difficulty (1-10)"),
    concept: Optional[str] = typer.Option(None, "--concept", "-c", help="Concept id"),
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Exercise session id"),
    response_ms: Optional[int] = typer.Option(None, "--response-ms", help="Response time (ms)"),
    skill_level: Optional[int] = typer.Option(None, "--skill-level", help="User skill level"),
) -> None:
    """Record an exercise attempt and show the updated mastery."""
    with _handle_errors():
        updated = _coordinator().record_attempt(
            user_id=user_id,
            skill_type=skill_type,
            concept_id=concept,
            was_correct=correct,
            difficulty_level=difficulty,
            session_id=session_id,
            response_time_ms=response_ms,
            user_skill_level=skill_level,
        )

    color = _mastery_color(updated.probability_known)
    console.print(
        Panel(
            f"P(known): [{color}]{updated.probability_known:.3f}[/{color}]\n"
            f"Attempts: {updated.correct_attempts}/{updated.total_attempts}\n"
            f"Ease: {updated.ease_factor:.2f}  Interval: {updated.review_interval_days:.1f}d\n"
            f"Next review: {_format_time(updated.next_review_at)}",
            title=f"{updated.skill_type} {updated.concept_id}".strip(),
            title_align="left",
            border_style="cyan",
        )
    )


@app.command()
def stats(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """Show aggregate mastery statistics."""
    with _handle_errors():
        mastery_stats = _coordinator().get_mastery_stats(user_id)

    console.print("\n[bold cyan]Mastery Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Skills tracked", str(mastery_stats.total_skills))
    table.add_row("Mastered", str(mastery_stats.mastered_skills))
    table.add_row("Due for review", str(mastery_stats.skills_due_for_review))
    table.add_row("Needing practice", str(mastery_stats.skills_needing_practice))
    table.add_row("Average mastery", f"{mastery_stats.average_mastery * 100:.1f}%")

    console.print(table)


@app.command()
def due(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """List skills due for review, most overdue first."""
    with _handle_errors():
        records = _coordinator().get_skills_due_for_review(user_id)
    _print_skills("Due for Review", records)


@app.command()
def practice(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """List skills needing practice, weakest first."""
    with _handle_errors():
        records = _coordinator().get_skills_needing_practice(user_id)
    _print_skills("Needing Practice", records)


@app.command()
def mastered(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """List mastered skills."""
    with _handle_errors():
        records = _coordinator().get_mastered_skills(user_id)
    _print_skills("Mastered", records)


@app.command()
def recommend(
    user_id: str = typer.Argument(..., help="Learner id"),
    skill_type: str = typer.Argument(..., help="Skill type"),
) -> None:
    """Show the recommended difficulty for the next exercise."""
    with _handle_errors():
        level = _coordinator().get_recommended_difficulty(user_id, skill_type)
    console.print(f"Recommended difficulty for [bold]{skill_type.upper()}[/bold]: [cyan]{level}[/cyan]")


@app.command()
def history(
    user_id: str = typer.Argument(..., help="Learner id"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of attempts to show"),
) -> None:
    """Show the most recent attempts."""
    with _handle_errors():
        entries = _coordinator().get_attempt_history(user_id, limit=limit)
    if not entries:
        console.print("[dim]No attempts recorded.[/dim]")
        return
    console.print(_history_table(entries))


@app.command()
def dashboard(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """Show stats with due, weak and mastered skills."""
    with _handle_errors():
        data = _coordinator().get_dashboard(user_id)
    s = data.stats
    console.print(
        Panel(
            f"Skills: {s.total_skills}   Mastered: {s.mastered_skills}   "
            f"Due: {s.skills_due_for_review}   Practice: {s.skills_needing_practice}   "
            f"Average: {s.average_mastery * 100:.1f}%",
            title="Dashboard",
            border_style="cyan",
        )
    )
    _print_skills("Due for Review", data.skills_due_for_review)
    _print_skills("Needing Practice", data.skills_needing_practice)
    _print_skills("Mastered", data.mastered_skills)


@app.command()
def export(
    user_id: str = typer.Argument(..., help="Learner id"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to file"),
) -> None:
    """Export all mastery data for a user as JSON."""
    with _handle_errors():
        payload = json.dumps(export_user_data(user_id), indent=2)
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload, encoding="utf-8")
    logger.info(f"Export written to {output}")
    console.print(f"[green]Exported mastery data to {output}[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
