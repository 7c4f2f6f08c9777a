"""CLI for the EMI collection service.

Provides commands to run the API and prepare a database.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from emi_collection.config import get_settings
from emi_collection.database.connection import Database
from emi_collection.database.seed import SEED_CUSTOMERS, seed_demo_data
from emi_collection.monitoring.logging import setup_logging

app = typer.Typer(
    name="emi-collection",
    help="EMI collection service - customer loans and EMI payments",
    add_completion=False,
)

console = Console()


async def _create_tables(database: Database) -> None:
    try:
        await database.create_all()
    finally:
        await database.dispose()


async def _seed(database: Database) -> int:
    try:
        await database.create_all()
        async with database.session_factory() as session:
            return await seed_demo_data(session)
    finally:
        await database.dispose()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "emi_collection.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.debug,
        log_level=settings.log_level.lower(),
    )


@app.command("init-db")
def init_db(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override the configured database URL"
    ),
) -> None:
    """Create the customers and payments tables if they don't exist."""
    settings = get_settings()
    setup_logging(settings)
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})

    try:
        asyncio.run(_create_tables(Database.from_settings(settings)))
    except Exception as e:
        console.print(f"[red]Error creating tables:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]Tables ready.[/green]")


@app.command()
def seed(
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override the configured database URL"
    ),
) -> None:
    """Load the demo customers and payment history into an empty database."""
    settings = get_settings()
    setup_logging(settings)
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})

    try:
        inserted = asyncio.run(_seed(Database.from_settings(settings)))
    except Exception as e:
        console.print(f"[red]Error seeding database:[/red] {e}")
        raise typer.Exit(1)

    if not inserted:
        console.print("[yellow]Customers already present, nothing seeded.[/yellow]")
        return

    table = Table(title="Seeded customers")
    table.add_column("Account", style="cyan")
    table.add_column("Name")
    table.add_column("EMI due", justify="right")
    for account_number, name, _, _, _, emi_due, _ in SEED_CUSTOMERS:
        table.add_row(account_number, name, emi_due)
    console.print(table)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
