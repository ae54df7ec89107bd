"""
Agency Intake - CLI Entry Point.

Usage:
    intake serve             Start the API server
    intake health            Check configuration
    intake session <id>      Show what a session has saved
    intake version           Show version
"""

import asyncio
import logging

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="intake",
    help="Agency Intake - contractor onboarding backend.",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the API server."""
    import os

    import uvicorn

    from intake.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Hosting platforms set PORT
    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Agency Intake API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "intake.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


@app.command()
def health() -> None:
    """Check configuration."""
    from intake.config import get_settings

    console.print("\n[bold]Agency Intake Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("OK Configuration loaded")
        console.print(f"   Environment: {settings.intake_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.supabase_url.startswith("https://"):
            console.print("OK Supabase URL configured")
        else:
            console.print("[red]FAIL[/red] Supabase URL missing or invalid")

        if settings.webhook_url:
            console.print("OK Completion webhook configured")
        else:
            console.print("INFO Completion webhook not configured (forwarding disabled)")

        console.print("\n[green]All checks passed![/green]")

    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def session(
    session_id: str = typer.Argument(..., help="Session id to inspect"),
) -> None:
    """Show the latest saved row of every step for a session."""
    from onboarding.errors import StoreUnavailable
    from onboarding.steps import FORM_STEPS, get_step
    from onboarding.store import RowStore

    store = RowStore()

    for step in FORM_STEPS:
        definition = get_step(step)
        try:
            row = asyncio.run(store.fetch_latest(definition.collection, session_id))
        except StoreUnavailable as e:
            console.print(f"[red]FAIL[/red] {definition.collection}: {e.message}")
            raise typer.Exit(1)

        if not row:
            console.print(f"[dim]{definition.title} ({definition.collection}): nothing saved[/dim]")
            continue

        table = Table(title=f"{definition.title} ({definition.collection})")
        table.add_column("Column", style="cyan")
        table.add_column("Value")
        for column, value in row.items():
            table.add_row(column, str(value))
        console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from intake import __version__

    console.print(f"Agency Intake version {__version__}")


if __name__ == "__main__":
    app()
