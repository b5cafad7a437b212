"""
Outlet POS CLI.

Command-line interface for common operations:

    pos create-tables
    pos seed --password secret123
    pos outbox-process
    pos low-stock <outlet-id>
    pos health
    pos version
"""

import asyncio
import sys
import uuid

import typer
from rich.console import Console
from rich.table import Table

from pos_api import __version__

app = typer.Typer(
    name="pos",
    help="Outlet POS management CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def create_tables():
    """Create all database tables (no-op for tables that exist)."""
    from pos_api.models import Base
    from pos_shared.infrastructure.db import engine

    try:
        Base.metadata.create_all(bind=engine)
        console.print("[green]✓ Tables created/verified[/green]")
    except Exception as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def seed(
    password: str = typer.Option("changeme123", help="Password for the seeded staff accounts"),
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Seed a demo outlet with staff, menu, tables and stock."""
    from pos_api.seed import seed as seed_outlet
    from pos_shared.config.settings import settings
    from pos_shared.infrastructure.db import get_db_context

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        outlet = seed_outlet(db, password=password)
        console.print(f"[green]✓ Outlet ready: {outlet.name} ({outlet.id})[/green]")


# =============================================================================
# Outbox Commands
# =============================================================================


@app.command()
def outbox_process():
    """Publish pending outbox events once and exit."""
    from pos_api.services.events.outbox_processor import process_pending_events_once
    from pos_shared.infrastructure.events import close_redis_pool

    async def _process() -> int:
        try:
            return await process_pending_events_once()
        finally:
            await close_redis_pool()

    processed = asyncio.run(_process())
    console.print(f"[green]✓ Processed {processed} outbox events[/green]")


# =============================================================================
# Inventory Commands
# =============================================================================


@app.command()
def low_stock(outlet_id: str = typer.Argument(..., help="Outlet UUID")):
    """List items at or below their low-stock threshold."""
    from pos_api.services.domain import InventoryService
    from pos_shared.infrastructure.db import get_db_context

    try:
        outlet = uuid.UUID(outlet_id)
    except ValueError:
        console.print(f"[red]Invalid outlet id: {outlet_id}[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        records = InventoryService(db).low_stock_alerts(outlet)

        if not records:
            console.print("[green]✓ No low-stock items[/green]")
            return

        table = Table(title="Low Stock")
        table.add_column("Item", style="cyan")
        table.add_column("Stock", style="red")
        table.add_column("Threshold", style="yellow")
        for record in records:
            table.add_row(record.item_name or str(record.item_id), str(record.stock), str(record.low_stock_threshold))
        console.print(table)


# =============================================================================
# Health Commands
# =============================================================================


@app.command()
def health():
    """Check database and Redis connectivity."""
    from sqlalchemy import text

    from pos_shared.infrastructure.db import get_db_context
    from pos_shared.infrastructure.events import check_redis_health, close_redis_pool

    table = Table(title="Service Health")
    table.add_column("Dependency", style="cyan")
    table.add_column("Status", style="green")

    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        table.add_row("Database", "✓ Healthy")
    except Exception as e:
        table.add_row("Database", f"✗ {type(e).__name__}")

    async def _redis() -> dict:
        try:
            return await check_redis_health()
        finally:
            await close_redis_pool()

    redis_status = asyncio.run(_redis())
    if redis_status["status"] == "healthy":
        table.add_row("Redis", "✓ Healthy")
    else:
        table.add_row("Redis", f"✗ {redis_status.get('error', 'unhealthy')}")

    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Outlet POS Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
