"""
Valkompass CLI.

Usage:
    valkompass start            # Start or resume a session
    valkompass start --fresh    # Discard the saved session first
    valkompass status           # Show the saved session
    valkompass reset            # Delete the saved session
    valkompass config           # Show active configuration
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from config import Settings, get_settings
from valkompass.ai.gemini_service import GeminiService
from valkompass.core.log_setup import configure_logging
from valkompass.core.models import SessionState
from valkompass.delivery.quiz_runner import QuizRunner
from valkompass.session.orchestrator import SessionOrchestrator
from valkompass.session.store import SessionStore

RESTART_PROMPT = "Är du säker på att du vill nollställa allt?"

app = typer.Typer(
    name="valkompass",
    help="Valkompass 2026 - AI-genererad valkompass i terminalen",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def _build_store(settings: Settings) -> SessionStore:
    return SessionStore(
        session_dir=settings.session_dir,
        key=settings.session_key,
        ttl_hours=settings.session_ttl_hours,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Valkompass: answer generated statements and see which parties you match."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


# =============================================================================
# Session Commands
# =============================================================================


@app.command()
def start(
    fresh: bool = typer.Option(False, "--fresh", help="Discard any saved session first"),
) -> None:
    """
    Start a questionnaire session, resuming a saved one if it exists.

    Examples:
        valkompass start           # Resume or start
        valkompass start --fresh   # Always start over
    """
    settings = get_settings()
    service = GeminiService(settings=settings)
    if not service.is_available:
        console.print("[red]GEMINI_API_KEY saknas. Lägg till den i .env eller miljön.[/red]")
        raise typer.Exit(code=1)

    orchestrator = SessionOrchestrator(
        service,
        _build_store(settings),
        settings=settings,
        confirm=lambda: Confirm.ask(f"[yellow]{RESTART_PROMPT}[/yellow]", default=False),
    )

    if fresh:
        orchestrator.restart(confirmed=True)
    elif orchestrator.state in (SessionState.QUIZ, SessionState.RESULTS):
        console.print(f"[cyan]Återupptar sparad session ({orchestrator.state.value})[/cyan]")

    runner = QuizRunner(orchestrator, console=console)
    final_state = asyncio.run(runner.run())
    logger.debug(f"Session runner finished in {final_state.value}")

    if final_state == SessionState.ERROR:
        raise typer.Exit(code=1)


@app.command()
def status() -> None:
    """Show the saved session, if any."""
    settings = get_settings()
    snapshot = _build_store(settings).load()

    if snapshot is None:
        console.print("[dim]Ingen sparad session.[/dim]")
        return

    age = datetime.now() - datetime.fromisoformat(snapshot.last_updated)
    hours_left = max(settings.session_ttl_hours - age.total_seconds() / 3600, 0)

    table = Table(title="Sparad session", show_header=False)
    table.add_column("Fält", style="cyan")
    table.add_column("Värde")
    table.add_row("Läge", snapshot.state.value)
    table.add_row("Frågor", str(len(snapshot.questions)))
    table.add_row("Besvarade", f"{len(snapshot.answers)} / {settings.target_questions}")
    table.add_row("Resultat", "Ja" if snapshot.result is not None else "Nej")
    table.add_row("Senast sparad", snapshot.last_updated)
    table.add_row("Går ut om", f"{hours_left:.1f} h")
    console.print(table)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete the saved session."""
    if not yes and not Confirm.ask(RESTART_PROMPT, default=False):
        raise typer.Exit(0)

    removed = _build_store(get_settings()).clear()
    if removed:
        console.print("[green]Sparad session borttagen.[/green]")
    else:
        console.print("[dim]Ingen sparad session att ta bort.[/dim]")


@app.command("config")
def show_config() -> None:
    """Show active configuration."""
    settings = get_settings()

    table = Table(title="Valkompass Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Gemini API key", "configured" if settings.has_ai_configured() else "[red]missing[/red]")
    table.add_row("Question model", settings.question_model)
    table.add_row("Analysis model", settings.analysis_model)
    table.add_row("Chat model", settings.chat_model)
    for key, value in settings.get_acquisition_config().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    table.add_row("Grace period", f"{settings.grace_period_seconds}s")
    table.add_row("Retry attempts", str(settings.retry_attempts))
    table.add_row("Session file", str(_build_store(settings).path))
    table.add_row("Session TTL", f"{settings.session_ttl_hours}h")
    table.add_row("Log level", settings.log_level)

    console.print(table)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
