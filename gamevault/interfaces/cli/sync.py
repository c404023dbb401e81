"""Synchronization CLI for Gamevault."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.table import Table

from gamevault.domain.models import PriceUpdateResult, SyncResult
from gamevault.infrastructure.db import DatabaseError
from gamevault.services.errors import (
    BlacklistedItemError,
    FetchError,
    InvalidSyncRequest,
    ItemNotFoundError,
)
from gamevault.services.sync_service import SyncService

from . import context

console = Console()

POLL_INTERVAL_SECONDS = 0.25


async def _follow(service: SyncService, operation_id: str):
    """Render progress until the run finishes, then return its result."""
    with console.status("Starting...") as status:
        while service.is_running(operation_id):
            info = service.get_progress(operation_id)
            if info is not None:
                status.update(f"{info.phase} [{info.percent:.0f}%] {info.message}")
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
    return await service.wait_for(operation_id)


def _print_sync_result(result: SyncResult) -> None:
    colour = "green" if result.status == "completed" else "red"
    console.print(f"[{colour}]Sync {result.status}[/{colour}] ({result.operation_id})")
    table = Table(title="Sync summary")
    table.add_column("Outcome", style="bold")
    table.add_column("Items", justify="right")
    table.add_row("Updated", str(result.updated_games_count))
    table.add_row("Unchanged", str(len(result.skipped_unchanged)))
    table.add_row("Not in update list", str(len(result.skipped_not_in_update_list)))
    table.add_row("Blacklisted", str(len(result.skipped_due_to_blacklist)))
    table.add_row("Failed", str(result.failed_games_count))
    console.print(table)
    if result.failed_to_fetch_details:
        console.print(
            "Failed item ids: " + ", ".join(str(i) for i in result.failed_to_fetch_details)
        )
    if result.error:
        console.print(f"[red]{result.error}[/red]")


def _print_price_result(result: PriceUpdateResult) -> None:
    colour = "green" if result.status == "completed" else "red"
    console.print(
        f"[{colour}]Price refresh {result.status}[/{colour}]: "
        f"{result.updated_count} updated, {result.skipped_count} skipped, "
        f"{result.failed_count} failed of {result.total_count}"
    )
    if result.error:
        console.print(f"[red]{result.error}[/red]")


async def _run_sync(
    cli_context: context.CLIContext,
    owner_ids: tuple[str, ...],
    override_existing: bool,
    only: tuple[int, ...],
) -> SyncResult | None:
    async with context.build_sync_service(cli_context) as service:
        operation_id = await service.start_sync(
            list(owner_ids), override_existing, list(only) if only else None
        )
        result = await _follow(service, operation_id)
    return result if isinstance(result, SyncResult) else None


@click.command(name="sync")
@click.argument("owner_ids", nargs=-1, required=True)
@click.option(
    "--override",
    "override_existing",
    is_flag=True,
    default=False,
    help="Re-fetch details for stored items and replace their owner lists.",
)
@click.option(
    "--only",
    "only",
    type=int,
    multiple=True,
    help="Restrict the run to this item id (repeatable).",
)
@click.pass_context
def sync(
    ctx: click.Context,
    owner_ids: tuple[str, ...],
    override_existing: bool,
    only: tuple[int, ...],
) -> None:
    """Reconcile the items owned by OWNER_IDS with the catalog."""
    cli_context: context.CLIContext = ctx.obj["cli_context"]
    console.print(
        f"[bold]Syncing {len(owner_ids)} owner(s)[/bold] into {cli_context.db_path}"
    )
    try:
        result = asyncio.run(_run_sync(cli_context, owner_ids, override_existing, only))
    except InvalidSyncRequest as exc:
        console.print(f"[red]Invalid request: {exc}[/red]")
        ctx.exit(2)
    except DatabaseError as exc:
        console.print(f"[red]Database unavailable: {exc}[/red]")
        ctx.exit(1)
    if result is None:
        console.print("[red]No result recorded for the run.[/red]")
        ctx.exit(1)
    _print_sync_result(result)
    if result.status != "completed":
        ctx.exit(1)


async def _run_refresh(cli_context: context.CLIContext, item_id: int):
    async with context.build_sync_service(cli_context) as service:
        return await service.update_single_item(item_id)


@click.command(name="refresh")
@click.argument("item_id", type=int)
@click.pass_context
def refresh(ctx: click.Context, item_id: int) -> None:
    """Re-fetch the details of a single ITEM_ID, keeping its owners."""
    cli_context: context.CLIContext = ctx.obj["cli_context"]
    try:
        with console.status(f"Refreshing item {item_id}..."):
            record = asyncio.run(_run_refresh(cli_context, item_id))
    except BlacklistedItemError:
        console.print(f"[yellow]Item {item_id} is blacklisted; not refreshed.[/yellow]")
        ctx.exit(1)
    except ItemNotFoundError:
        console.print(f"[red]Item {item_id} not found in the catalog.[/red]")
        ctx.exit(1)
    except (FetchError, DatabaseError) as exc:
        console.print(f"[red]Refresh failed: {exc}[/red]")
        ctx.exit(1)
    console.print(f"[green]Refreshed [bold]{record.name or item_id}[/bold][/green]")


async def _run_prices(cli_context: context.CLIContext):
    async with context.build_sync_service(cli_context) as service:
        operation_id = await service.start_price_update()
        return await _follow(service, operation_id)


@click.command(name="prices")
@click.pass_context
def prices(ctx: click.Context) -> None:
    """Refresh the stored price of every item."""
    cli_context: context.CLIContext = ctx.obj["cli_context"]
    try:
        result = asyncio.run(_run_prices(cli_context))
    except DatabaseError as exc:
        console.print(f"[red]Database unavailable: {exc}[/red]")
        ctx.exit(1)
    if not isinstance(result, PriceUpdateResult):
        console.print("[red]No result recorded for the run.[/red]")
        ctx.exit(1)
    _print_price_result(result)
    if result.status != "completed":
        ctx.exit(1)
