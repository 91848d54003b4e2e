#!/usr/bin/env python3
"""VOD Dashboard - Management CLI

Command-line access to the same services the HTTP API uses.

Usage:
    python manage.py serve                          # Start the HTTP server
    python manage.py servers list                   # List configured servers
    python manage.py servers add NAME URL USER PASS # Add a server
    python manage.py servers remove SERVER_ID       # Delete a server
    python manage.py servers check [SERVER_ID]      # Re-check status (all if omitted)
    python manage.py categories SERVER_ID           # List VOD categories
    python manage.py movies SERVER_ID -q matrix     # Search/filter/sort movies
    python manage.py export SERVER_ID 101 102       # Write aria2c-commands.txt
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add project directory to path
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.table import Table

from vod_dashboard.core.config import get_config
from vod_dashboard.core.errors import DashboardError
from vod_dashboard.models.catalog import ServerStatus
from vod_dashboard.services.activity_service import get_activity_service
from vod_dashboard.services.catalog_search import apply_pipeline, parse_date_filter
from vod_dashboard.services.export_service import export_movies, export_filename, render_commands
from vod_dashboard.services.server_directory import get_server_directory
from vod_dashboard.services.status_service import refresh_server_status
from vod_dashboard.services.xtream_client import create_xtream_client

console = Console()

STATUS_STYLES = {
    ServerStatus.ONLINE: "green",
    ServerStatus.OFFLINE: "red",
    ServerStatus.UNKNOWN: "yellow",
}


def print_error(message: str):
    """Print error message."""
    console.print(f"[red]✗[/red] {message}", style="red")


def print_success(message: str):
    """Print success message."""
    console.print(f"[green]✓[/green] {message}", style="green")


def print_warning(message: str):
    """Print warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")


def run_or_exit(coro):
    """Run a coroutine, turning service errors into exit code 1"""
    try:
        return asyncio.run(coro)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to config.yaml")
def cli(config_path: Optional[str]):
    """VOD Dashboard management commands."""
    get_config(config_path, reload=True)


@cli.command()
def serve():
    """Start the HTTP server."""
    from vod_dashboard.main import run_server
    config = get_config()
    console.print(f"[bold cyan]Starting VOD Dashboard on http://{config.server.host}:{config.server.port}[/bold cyan]")
    run_server()


# ============================================================================
# Servers
# ============================================================================

@cli.group()
def servers():
    """Manage IPTV servers."""


@servers.command("list")
def servers_list():
    """List configured servers."""
    records = get_server_directory().list_servers()
    if not records:
        print_warning("No servers configured")
        return

    table = Table(title="IPTV Servers")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("URL")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Last checked", style="dim")

    for server in records:
        style = STATUS_STYLES.get(server.status, "")
        table.add_row(
            server.id,
            server.name,
            server.url,
            server.username,
            f"[{style}]{server.status.value}[/{style}]",
            server.last_checked or "-",
        )
    console.print(table)


@servers.command("add")
@click.argument("name")
@click.argument("url")
@click.argument("username")
@click.argument("password")
@click.option("--no-check", is_flag=True, help="Do not probe the server after adding it")
def servers_add(name: str, url: str, username: str, password: str, no_check: bool):
    """Add a server."""
    directory = get_server_directory()
    try:
        server = directory.create_server(name=name, url=url, username=username, password=password)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)

    if not no_check:
        server = run_or_exit(refresh_server_status(directory, server.id))

    get_activity_service().log_success(
        "create_server", f"Server {server.name} created successfully", server.id
    )
    print_success(f"Added {server.name} ({server.id}) - {server.status.value}")


@servers.command("remove")
@click.argument("server_id")
def servers_remove(server_id: str):
    """Delete a server."""
    directory = get_server_directory()
    try:
        server = directory.require_server(server_id)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)

    directory.delete_server(server.id)
    get_activity_service().log_success(
        "delete_server", f"Server {server.name} deleted successfully", server.id
    )
    print_success(f"Deleted {server.name}")


@servers.command("check")
@click.argument("server_id", required=False)
def servers_check(server_id: Optional[str]):
    """Re-check server status (all servers when no id is given)."""
    directory = get_server_directory()
    ids = [server_id] if server_id else [server.id for server in directory.list_servers()]

    for current_id in ids:
        server = run_or_exit(refresh_server_status(directory, current_id))
        style = STATUS_STYLES.get(server.status, "")
        console.print(f"{server.name}: [{style}]{server.status.value}[/{style}]")


# ============================================================================
# Catalog
# ============================================================================

@cli.command()
@click.argument("server_id")
def categories(server_id: str):
    """List VOD categories of a server."""
    try:
        server = get_server_directory().require_server(server_id)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)

    result = run_or_exit(create_xtream_client(server).get_categories())

    table = Table(title=f"Categories on {server.name}")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    for category in result:
        table.add_row(category.category_id, category.category_name)
    console.print(table)


@cli.command()
@click.argument("server_id")
@click.option("-q", "--query", help="Fuzzy search text")
@click.option("-c", "--category", "category_id", help="Category id")
@click.option("--from-date", help="Only movies added on or after this date (ISO-8601)")
@click.option("--sort-by", type=click.Choice(["name", "added", "rating"]))
@click.option("--sort-order", type=click.Choice(["asc", "desc"]), default="asc", show_default=True)
@click.option("--limit", type=int, default=50, show_default=True, help="Rows to display")
def movies(server_id, query, category_id, from_date, sort_by, sort_order, limit):
    """Search, filter and sort a server's movies."""
    if from_date and parse_date_filter(from_date) is None:
        print_error("--from-date must be an ISO-8601 date or datetime")
        sys.exit(1)

    try:
        server = get_server_directory().require_server(server_id)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)

    items = run_or_exit(create_xtream_client(server).get_movies(category_id))
    items = apply_pipeline(
        items,
        query=query,
        category_id=category_id,
        from_date=from_date,
        sort_by=sort_by,
        sort_order=sort_order,
        threshold=get_config().search.threshold,
    )

    table = Table(title=f"{len(items)} movies on {server.name}")
    table.add_column("Stream ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Added")
    table.add_column("Rating")
    for item in items[:limit]:
        table.add_row(
            str(item.stream_id),
            item.name,
            item.category_id,
            item.added or "-",
            item.rating or "-",
        )
    console.print(table)


@cli.command()
@click.argument("server_id")
@click.argument("movie_ids", nargs=-1, type=int, required=True)
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file")
def export(server_id, movie_ids, output):
    """Write aria2c download commands for the given movie ids."""
    try:
        server = get_server_directory().require_server(server_id)
    except DashboardError as e:
        print_error(e.message)
        sys.exit(1)

    result = run_or_exit(export_movies(create_xtream_client(server), list(movie_ids)))

    for failed in result.results:
        if not failed.success:
            print_warning(f"Movie {failed.stream_id} skipped: {failed.error}")

    if not result.commands:
        print_error("No movies could be resolved")
        sys.exit(1)

    if output is None:
        single = result.commands[0].movie_name if len(movie_ids) == 1 else None
        output = export_filename(single)

    Path(output).write_text(render_commands(result.commands), encoding="utf-8")

    activity = get_activity_service()
    activity.log_success(
        "export_movies",
        f"Successfully generated export data for {result.exported} of "
        f"{result.requested} movies from server {server.name}",
        server.id,
    )
    activity.record_export(f"Export from {server.name}", result.command_lines, server.id)

    print_success(f"Wrote {result.exported} of {result.requested} commands to {output}")


if __name__ == "__main__":
    cli()
